from .card import CardRepository
from .token import TokenRepository
from .transfer import TransferRepository
from .user import UserRepository

__all__ = ["CardRepository", "TokenRepository", "TransferRepository", "UserRepository"]
