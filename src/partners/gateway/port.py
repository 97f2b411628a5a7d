"""External party gateway port (abstract interface).

Read-only lookups against the service that owns artworks, partners,
credit cards and merchant accounts. Lookups return ``None`` when the record
does not exist; transport failures propagate as raised exceptions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Artwork:
    id: str
    current_version_id: str
    title: str | None = None


@dataclass(frozen=True)
class CustomerAccount:
    external_id: str | None = None


@dataclass(frozen=True)
class CreditCard:
    id: str
    external_id: str | None = None
    customer_account: CustomerAccount | None = None
    deactivated_at: datetime | None = None
    last_digits: str | None = None


@dataclass(frozen=True)
class Partner:
    id: str
    name: str | None = None
    effective_commission_rate: float | None = None
    type: str = "Gallery"

    @property
    def is_auction(self) -> bool:
        return self.type == "Auction"


@dataclass(frozen=True)
class MerchantAccount:
    id: str
    external_id: str
    partner_id: str


class ExternalPartyGateway(ABC):
    """Abstract interface over the external party service."""

    @abstractmethod
    def get_artwork(self, artwork_id: str) -> Artwork | None: ...

    @abstractmethod
    def get_credit_card(self, credit_card_id: str) -> CreditCard | None: ...

    @abstractmethod
    def fetch_partner(self, partner_id: str) -> Partner | None: ...

    @abstractmethod
    def get_merchant_account(self, partner_id: str) -> MerchantAccount | None: ...
