"""Per-request snapshot of a tenant's configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from pos.domain.business_hours import BusinessHours, Holiday, holidays_from_dicts


@dataclass(frozen=True, slots=True)
class TenantSettings:
    """Immutable view of the settings stored on a tenant row.

    Services read one of these per request, derive a new value with
    ``dataclasses.replace`` and hand it back to the repository, which
    writes it in one versioned UPDATE. ``version`` is the value read; the
    write fails if the row moved on in the meantime.
    """

    tenant_id: int
    version: int
    name: str
    currency: str
    timezone: str
    tax_enabled: bool = False
    default_tax_rate: Decimal = Decimal(0)
    tax_label: str = "Tax"
    business_hours: dict[str, Any] = field(default_factory=dict)
    holidays: tuple[dict[str, Any], ...] = ()

    @property
    def effective_default_tax_rate(self) -> Decimal | None:
        """Default rate used by the tax resolver; None while tax is disabled."""
        if not self.tax_enabled:
            return None
        return self.default_tax_rate

    def hours(self) -> BusinessHours:
        return BusinessHours.from_dict(self.business_hours)

    def holiday_calendar(self) -> list[Holiday]:
        return holidays_from_dicts(self.holidays)
