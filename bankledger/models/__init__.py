from bankledger.models.base import Base
from bankledger.models.internal_account import InternalAccount
from bankledger.models.transaction import Transaction
from bankledger.models.transfer_rule import TransferRule
from bankledger.models.user import User

__all__ = ["Base", "InternalAccount", "Transaction", "TransferRule", "User"]
