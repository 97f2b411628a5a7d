"""Fake external party gateway backed by in-memory dictionaries.

Tests register the records they need; every lookup is logged in ``calls``
so tests can assert that no lookup happened.
"""

from partners.gateway.port import Artwork, CreditCard, ExternalPartyGateway, MerchantAccount, Partner


class FakePartyGateway(ExternalPartyGateway):
    def __init__(self) -> None:
        self.artworks: dict[str, Artwork] = {}
        self.credit_cards: dict[str, CreditCard] = {}
        self.partners: dict[str, Partner] = {}
        self.merchant_accounts: dict[str, MerchantAccount] = {}
        self.calls: list[dict] = []

    # Registration helpers
    def add_artwork(self, artwork: Artwork) -> None:
        self.artworks[artwork.id] = artwork

    def add_credit_card(self, credit_card: CreditCard) -> None:
        self.credit_cards[credit_card.id] = credit_card

    def add_partner(self, partner: Partner) -> None:
        self.partners[partner.id] = partner

    def add_merchant_account(self, account: MerchantAccount) -> None:
        self.merchant_accounts[account.partner_id] = account

    # Port
    def get_artwork(self, artwork_id: str) -> Artwork | None:
        self.calls.append({"method": "get_artwork", "artwork_id": artwork_id})
        return self.artworks.get(artwork_id)

    def get_credit_card(self, credit_card_id: str) -> CreditCard | None:
        self.calls.append({"method": "get_credit_card", "credit_card_id": credit_card_id})
        return self.credit_cards.get(credit_card_id)

    def fetch_partner(self, partner_id: str) -> Partner | None:
        self.calls.append({"method": "fetch_partner", "partner_id": partner_id})
        return self.partners.get(partner_id)

    def get_merchant_account(self, partner_id: str) -> MerchantAccount | None:
        self.calls.append({"method": "get_merchant_account", "partner_id": partner_id})
        return self.merchant_accounts.get(partner_id)
