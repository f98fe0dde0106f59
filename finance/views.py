from core.api import OwnedCollectionView, OwnedObjectView
from core.payloads import Field, boolean, integer, moment, short_text

from .models import Transaction

TRANSACTION_FIELDS = {
    "amount": Field("amount", integer, required=True),
    "description": Field("description", short_text, required=True),
    "category": Field("category", short_text),
    "date": Field("date", moment, required=True),
    "isIncome": Field("is_income", boolean, nullable=False),
}


def _transaction_json(transaction: Transaction) -> dict:
    return {
        "id": transaction.pk,
        "userId": transaction.user_id,
        "amount": transaction.amount,
        "description": transaction.description,
        "category": transaction.category,
        "date": transaction.date,
        "isIncome": transaction.is_income,
    }


class TransactionListView(OwnedCollectionView):
    model = Transaction
    fields = TRANSACTION_FIELDS
    ordering = ("-date", "-id")

    def serialize(self, obj):
        return _transaction_json(obj)


class TransactionDetailView(OwnedObjectView):
    model = Transaction
    fields = TRANSACTION_FIELDS
    label = "Transaction"

    def serialize(self, obj):
        return _transaction_json(obj)
