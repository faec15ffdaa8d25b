# geodesafio/services/address.py
"""
Stand-in for a postal-code (CEP) lookup.

Returns canned street data for any code; the city comes from the topic the
player picked. Nothing here touches the network.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

NOT_AVAILABLE = "Address information not available for this challenge."

# Canned response, shaped like a viaCEP payload
_CANNED = {
    "logradouro": "Rua Exemplo",
    "bairro": "Bairro Histórico",
    "uf": "SP",
}


@dataclass(frozen=True)
class AddressInfo:
    code: str
    street: str
    district: str
    city: str
    state: str

    def describe(self) -> str:
        return f"Address (mock lookup): {self.street}, {self.district}, {self.city}/{self.state}."


def lookup_address(code: Optional[str], city_name: str) -> Optional[AddressInfo]:
    code = (code or "").strip()
    if not code:
        return None
    return AddressInfo(
        code=code,
        street=_CANNED["logradouro"],
        district=_CANNED["bairro"],
        city=city_name,
        state=_CANNED["uf"],
    )


def address_text(code: Optional[str], city_name: str) -> str:
    info = lookup_address(code, city_name)
    return info.describe() if info else NOT_AVAILABLE
