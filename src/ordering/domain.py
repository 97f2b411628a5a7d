"""Ordering bounded context: order commitment, expiration and negotiation.

Handles the order lifecycle (pending → submitted → approved → fulfilled),
the commit saga that reserves inventory and charges the buyer, and the
time-driven expiration of pending and submitted orders.

Configuration is read from the environment once and can be overridden per
collaborator (tests build their own Settings).
"""

import os
from datetime import timedelta

import structlog
from protean.domain import Domain
from pydantic import BaseModel

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)


def _env_hours(env, name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        hours = int(raw)
    except ValueError:
        hours = -1
    if hours <= 0:
        logger.warning("Ignoring invalid expiration setting", setting=name, value=raw, default=default)
        return default
    return hours


class Settings(BaseModel):
    charge_description_suffix: str = "via Exchange"
    pending_expiration_hours: int = 48
    submitted_expiration_hours: int = 48
    approved_expiration_hours: int = 168
    log_format: str = "console"

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.environ
        defaults = cls()
        return cls(
            charge_description_suffix=env.get(
                "EXCHANGE_CHARGE_DESCRIPTION_SUFFIX", defaults.charge_description_suffix
            ),
            pending_expiration_hours=_env_hours(
                env, "EXCHANGE_PENDING_EXPIRATION_HOURS", defaults.pending_expiration_hours
            ),
            submitted_expiration_hours=_env_hours(
                env, "EXCHANGE_SUBMITTED_EXPIRATION_HOURS", defaults.submitted_expiration_hours
            ),
            approved_expiration_hours=_env_hours(
                env, "EXCHANGE_APPROVED_EXPIRATION_HOURS", defaults.approved_expiration_hours
            ),
            log_format=env.get("EXCHANGE_LOG_FORMAT", defaults.log_format),
        )

    @property
    def state_expirations(self) -> dict[str, timedelta]:
        """How long an order may sit in each non-terminal state."""
        return {
            "pending": timedelta(hours=self.pending_expiration_hours),
            "submitted": timedelta(hours=self.submitted_expiration_hours),
            "approved": timedelta(hours=self.approved_expiration_hours),
        }


settings = Settings.from_env()
