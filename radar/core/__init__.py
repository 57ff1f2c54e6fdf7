from .builder import Radar
from .transaction import Transaction, TransactionState, begin_transaction, transaction

__all__ = ["Radar", "Transaction", "TransactionState", "begin_transaction", "transaction"]
