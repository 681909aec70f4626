"""Repository for the Customer aggregate."""

from protean.exceptions import ExpectedVersionError, ValidationError

from marketplace.customer.customer import Customer, customer_key_for
from marketplace.domain import marketplace


@marketplace.repository(part_of=Customer)
class CustomerRepository:
    def add(self, customer: Customer) -> Customer:
        """Persist ``customer``.

        A second customer for the same (vendor, email) pair fails the unique
        ``customer_key`` and surfaces as a version conflict, so a retried
        command picks up the record that won.
        """
        try:
            return super().add(customer)
        except ValidationError as exc:
            if "customer_key" not in exc.messages:
                raise
            raise ExpectedVersionError(f"Customer {customer.customer_key} already exists") from exc

    def find_by_email(self, vendor_id, email: str) -> Customer | None:
        results = self._dao.query.filter(customer_key=customer_key_for(vendor_id, email)).all().items
        return results[0] if results else None

    def find_for_vendor(self, vendor_id) -> list[Customer]:
        return self._dao.query.filter(vendor_id=str(vendor_id)).order_by("created_at").all().items

    def find_or_create(self, vendor_id, email: str, user_id=None, **details) -> Customer:
        """The vendor's customer with this email, or a new one with zeroed totals (not yet saved).

        An existing guest record is linked to ``user_id`` when it has none.
        """
        customer = self.find_by_email(vendor_id, email)
        if customer is None:
            return Customer.create(vendor_id=vendor_id, email=email, user_id=user_id, **details)
        customer.link_user(user_id)
        return customer
