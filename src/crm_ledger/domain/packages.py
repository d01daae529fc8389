"""Predefined credit packages offered by the credit loader."""

from dataclasses import dataclass
from decimal import Decimal

from src.crm_common.errors import PackageNotFoundError


@dataclass(frozen=True)
class CreditPackage:
    id: str
    name: str
    credits: Decimal
    price: int        # ARS, whole pesos


CREDIT_PACKAGES: dict[str, CreditPackage] = {
    p.id: p
    for p in (
        CreditPackage("basic", "Básico", Decimal("100"), 1000),
        CreditPackage("premium", "Premium", Decimal("500"), 4500),
        CreditPackage("gold", "Gold", Decimal("1000"), 8000),
        CreditPackage("enterprise", "Enterprise", Decimal("2500"), 18000),
    )
}


def get_package(package_id: str) -> CreditPackage:
    try:
        return CREDIT_PACKAGES[package_id]
    except KeyError:
        raise PackageNotFoundError(package_id) from None
