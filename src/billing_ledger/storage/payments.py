"""Payment rows: ``id,billId,amount,paymentDateTime,paymentMethod,status``."""

from pydantic import ValidationError as PydanticValidationError

from ..codec import format_amount, format_datetime, parse_amount, parse_datetime
from ..errors import ParseError
from ..schemas import Payment, PaymentStatus
from .files import DelimitedFileStore

PAYMENT_HEADER = ("id", "billId", "amount", "paymentDateTime", "paymentMethod", "status")


class PaymentFileStore(DelimitedFileStore[Payment]):
    """Persists every payment to one file, one line per payment."""

    header = PAYMENT_HEADER
    entity_name = "payment"

    def encode(self, payment: Payment) -> list[str]:
        return [
            payment.id,
            payment.bill_id,
            format_amount(payment.amount),
            format_datetime(payment.payment_datetime),
            payment.payment_method,
            payment.status.value,
        ]

    def decode(self, fields: list[str]) -> Payment:
        payment_id = fields[0].strip()
        amount = parse_amount(fields[2], field="payment amount")
        paid_at = parse_datetime(fields[3], field="payment date")
        try:
            status = PaymentStatus(fields[5].strip().upper())
        except ValueError as e:
            raise ParseError(f"Unknown payment status: {fields[5]!r}") from e

        try:
            return Payment(
                id=payment_id,
                bill_id=fields[1].strip(),
                amount=amount,
                payment_datetime=paid_at,
                payment_method=fields[4],
                status=status,
            )
        except PydanticValidationError as e:
            raise ParseError(f"Invalid payment {payment_id!r}: {e.errors()[0]['msg']}") from e
