"""Data captured by the three forms, the catalog, and the final order."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from errors import CatalogError, ValidationError
from pricing import clamp_quantity

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _to_cents(value, label):
    """Exact euros -> cents. CMS prices come as numbers or decimal strings."""
    if value is None or isinstance(value, bool):
        raise CatalogError(f"Missing price for {label}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise CatalogError(f"Invalid price for {label}: {value!r}")
    if not amount.is_finite() or amount < 0:
        raise CatalogError(f"Invalid price for {label}: {value!r}")
    return int((amount * 100).quantize(Decimal("1")))


# --- FORM FRAGMENTS ---

@dataclass(frozen=True)
class ContactInfo:
    name: str
    email: str

    def validate(self):
        if not (self.name or "").strip():
            raise ValidationError("Indique o nome do encarregado de educação.", field="name")
        if not EMAIL_RE.match((self.email or "").strip()):
            raise ValidationError("Indique um email válido.", field="email")

    def cleaned(self):
        return ContactInfo(self.name.strip(), self.email.strip())


@dataclass(frozen=True)
class StudentInfo:
    name: str
    class_name: str

    @classmethod
    def from_selectors(cls, name, year, room):
        # "5" + "A" -> "5ºA"; an unpicked selector leaves the class empty
        if not year or not room:
            return cls(name, "")
        return cls(name, f"{year}º{room}")

    def validate(self):
        if not (self.name or "").strip():
            raise ValidationError("Indique o nome do aluno.", field="name")
        if not (self.class_name or "").strip():
            raise ValidationError("Selecione o ano e a turma.", field="class_name")

    def cleaned(self):
        return StudentInfo(self.name.strip(), self.class_name.strip())


# --- CATALOG ---

@dataclass(frozen=True)
class Pack:
    id: str
    name: str
    description: str
    price_cents: int

    @classmethod
    def from_cms(cls, row):
        if not isinstance(row, dict):
            raise CatalogError(f"Pack row is not an object: {row!r}")
        pack_id = str(row.get("id") or row.get("name") or "")
        if not pack_id:
            raise CatalogError(f"Pack without id: {row!r}")
        return cls(
            id=pack_id,
            name=str(row.get("name") or pack_id),
            description=row.get("description") or "",
            price_cents=_to_cents(row.get("price"), pack_id),
        )


@dataclass(frozen=True)
class Extra:
    id: str
    description: str
    price_cents: int

    @property
    def name(self):
        return self.id

    @classmethod
    def from_cms(cls, row):
        if not isinstance(row, dict):
            raise CatalogError(f"Extra row is not an object: {row!r}")
        # extras are keyed by their name field
        extra_id = str(row.get("extra") or "")
        if not extra_id:
            raise CatalogError(f"Extra without name: {row!r}")
        return cls(
            id=extra_id,
            description=row.get("description") or "",
            price_cents=_to_cents(row.get("price"), extra_id),
        )


@dataclass(frozen=True)
class Catalog:
    packs: tuple = ()
    extras: tuple = ()

    def pack(self, pack_id):
        return next((p for p in self.packs if p.id == pack_id), None)

    def extra(self, extra_id):
        return next((e for e in self.extras if e.id == extra_id), None)


# --- SELECTION ---

@dataclass
class Selection:
    """
    Chosen packs and extras with quantities.

    A key present in either mapping always holds a quantity in [1, 99];
    deselecting removes the key.
    """

    packs: dict[str, int] = field(default_factory=dict)
    extras: dict[str, int] = field(default_factory=dict)
    exclusive_pack_id: str | None = None

    def toggle_pack(self, pack_id):
        if pack_id in self.packs:
            del self.packs[pack_id]
        elif pack_id == self.exclusive_pack_id:
            self.packs.clear()
            self.packs[pack_id] = 1
        else:
            self.packs.pop(self.exclusive_pack_id, None)
            self.packs[pack_id] = 1

    def toggle_extra(self, extra_id):
        if extra_id in self.extras:
            del self.extras[extra_id]
        else:
            self.extras[extra_id] = 1

    def set_pack_quantity(self, pack_id, quantity):
        if pack_id in self.packs:
            self.packs[pack_id] = clamp_quantity(quantity)

    def set_extra_quantity(self, extra_id, quantity):
        if extra_id in self.extras:
            self.extras[extra_id] = clamp_quantity(quantity)

    def total_extra_units(self):
        return sum(self.extras.values())

    def is_empty(self):
        return not self.packs and not self.extras

    def clear(self):
        self.packs.clear()
        self.extras.clear()

    def prune(self, catalog):
        """Drop ids a refreshed catalog no longer has."""
        known_packs = {p.id for p in catalog.packs}
        if self.exclusive_pack_id:
            known_packs.add(self.exclusive_pack_id)
        known_extras = {e.id for e in catalog.extras}
        self.packs = {k: v for k, v in self.packs.items() if k in known_packs}
        self.extras = {k: v for k, v in self.extras.items() if k in known_extras}


# --- FINAL ORDER ---

@dataclass(frozen=True)
class Order:
    guardian_name: str
    email: str
    student_name: str
    school: str
    class_name: str
    packs: tuple
    extras: tuple
    observation: str
    total_cents: int
    offered_item_id: str | None = None

    @property
    def total(self):
        return Decimal(self.total_cents) / 100

    def to_cms_payload(self):
        """Field names match the Directus `encomendas` collection."""
        return {
            "name_ed": self.guardian_name,
            "email": self.email,
            "name_stu": self.student_name,
            "escola": self.school,
            "turma": self.class_name,
            "packs": [line.label() for line in self.packs],
            "extras": [line.label() for line in self.extras],
            "obs": self.observation,
            "total_enc": float(self.total.quantize(Decimal("0.01"))),
        }
