"""
Unit-safe scalar conversion.

Every quantity family has a canonical SI unit and a table of linear
conversions ``si = value * scale + offset``. Gauge pressures are offset by one
standard atmosphere. Unknown units, or units used for the wrong family, raise
UnitConversionError instead of passing the value through.
"""

import logging
from typing import Any, ClassVar, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from utils.constants import (
    P_ATM, PSI_to_PA, DEG_C_to_K, INCH_to_M, FT_to_M, LB_to_KG,
    LBFT3_to_KGM3, CENTIPOISE_to_PAS
)
from utils.errors import UnitConversionError

logger = logging.getLogger("hydronet-mcp.units")

_RANKINE = 5.0 / 9.0

UNIT_TABLES: Dict[str, Dict[str, Tuple[float, float]]] = {
    "pressure": {
        "Pa": (1.0, 0.0),
        "kPa": (1e3, 0.0),
        "MPa": (1e6, 0.0),
        "bar": (1e5, 0.0),
        "psi": (PSI_to_PA, 0.0),
        "atm": (P_ATM, 0.0),
        "Pag": (1.0, P_ATM),
        "kPag": (1e3, P_ATM),
        "MPag": (1e6, P_ATM),
        "barg": (1e5, P_ATM),
        "psig": (PSI_to_PA, P_ATM),
    },
    "pressure_difference": {
        "Pa": (1.0, 0.0),
        "kPa": (1e3, 0.0),
        "MPa": (1e6, 0.0),
        "bar": (1e5, 0.0),
        "psi": (PSI_to_PA, 0.0),
    },
    "temperature": {
        "K": (1.0, 0.0),
        "C": (1.0, DEG_C_to_K),
        "F": (_RANKINE, DEG_C_to_K - 32.0 * _RANKINE),
        "R": (_RANKINE, 0.0),
    },
    "length": {
        "m": (1.0, 0.0),
        "mm": (1e-3, 0.0),
        "cm": (1e-2, 0.0),
        "km": (1e3, 0.0),
        "in": (INCH_to_M, 0.0),
        "ft": (FT_to_M, 0.0),
    },
    "mass_flow": {
        "kg/s": (1.0, 0.0),
        "kg/h": (1.0 / 3600.0, 0.0),
        "t/h": (1000.0 / 3600.0, 0.0),
        "lb/h": (LB_to_KG / 3600.0, 0.0),
        "lb/s": (LB_to_KG, 0.0),
    },
    "density": {
        "kg/m3": (1.0, 0.0),
        "g/cm3": (1000.0, 0.0),
        "lb/ft3": (LBFT3_to_KGM3, 0.0),
    },
    "viscosity": {
        "Pa.s": (1.0, 0.0),
        "mPa.s": (1e-3, 0.0),
        "cP": (CENTIPOISE_to_PAS, 0.0),
    },
    "molar_mass": {
        "kg/kmol": (1.0, 0.0),
        "g/mol": (1.0, 0.0),
        "kg/mol": (1000.0, 0.0),
    },
}

SI_UNITS = {
    "pressure": "Pa",
    "pressure_difference": "Pa",
    "temperature": "K",
    "length": "m",
    "mass_flow": "kg/s",
    "density": "kg/m3",
    "viscosity": "Pa.s",
    "molar_mass": "kg/kmol",
}

# Alternative spellings accepted on input; stored quantities use the canonical key
UNIT_ALIASES = {
    "pa": "Pa",
    "kpa": "kPa",
    "mpa": "MPa",
    "psia": "psi",
    "bara": "bar",
    "kPaa": "kPa",
    "kPa(g)": "kPag",
    "bar(g)": "barg",
    "psi(g)": "psig",
    "degC": "C",
    "°C": "C",
    "degF": "F",
    "°F": "F",
    "degR": "R",
    "°R": "R",
    "kelvin": "K",
    "inch": "in",
    "feet": "ft",
    "kg/hr": "kg/h",
    "lb/hr": "lb/h",
    "kg/m^3": "kg/m3",
    "kg/m³": "kg/m3",
    "lb/ft^3": "lb/ft3",
    "lb/ft³": "lb/ft3",
    "g/cc": "g/cm3",
    "Pa·s": "Pa.s",
    "Pa*s": "Pa.s",
    "mPa·s": "mPa.s",
    "cp": "cP",
}


def canonical_unit(unit: str) -> str:
    """Return the canonical spelling of a unit symbol (aliases resolved)."""
    if not isinstance(unit, str):
        raise UnitConversionError(f"Unit must be a string, got {unit!r}")
    unit = unit.strip()
    return UNIT_ALIASES.get(unit, unit)


def resolve_unit(unit: str, family: str) -> str:
    """Validate ``unit`` against ``family`` and return its canonical spelling."""
    if family not in UNIT_TABLES:
        raise UnitConversionError(f"Unknown quantity family '{family}'")
    symbol = canonical_unit(unit)
    if symbol not in UNIT_TABLES[family]:
        known = ", ".join(UNIT_TABLES[family])
        raise UnitConversionError(f"Unknown {family} unit '{unit}' (expected one of: {known})")
    return symbol


def to_si(value: float, unit: str, family: str) -> float:
    scale, offset = UNIT_TABLES[family][resolve_unit(unit, family)]
    return value * scale + offset


def from_si(value: float, unit: str, family: str) -> float:
    scale, offset = UNIT_TABLES[family][resolve_unit(unit, family)]
    return (value - offset) / scale


def convert(value: float, from_unit: str, to_unit: str) -> float:
    """Convert a scalar between two units of the same family.

    Args:
        value: Magnitude expressed in ``from_unit``
        from_unit: Source unit symbol (aliases accepted)
        to_unit: Target unit symbol (aliases accepted)

    Returns:
        The magnitude expressed in ``to_unit``

    Raises:
        UnitConversionError: if either unit is unknown or the units belong to
            different families (e.g. "kPa" to "m").
    """
    source = canonical_unit(from_unit)
    target = canonical_unit(to_unit)
    for family, table in UNIT_TABLES.items():
        if source in table and target in table:
            return from_si(to_si(value, source, family), target, family)
    raise UnitConversionError(f"Cannot convert from '{from_unit}' to '{to_unit}'")


class Quantity(BaseModel):
    """A scalar with an explicit, validated unit.

    A bare number is accepted on input and takes the family's default unit;
    so does a mapping with no ``unit`` key. Families with ``requires_unit``
    (absolute pressure and temperature) reject both.
    """
    model_config = ConfigDict(frozen=True)

    family: ClassVar[str] = ""
    default_unit: ClassVar[str] = ""
    requires_unit: ClassVar[bool] = False

    value: float
    unit: str = Field(default="", validate_default=True)

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_number(cls, data: Any) -> Any:
        if isinstance(data, (int, float)) and not isinstance(data, bool):
            if cls.requires_unit:
                raise ValueError(f"{cls.family} value {data} needs an explicit unit")
            return {"value": data}
        return data

    @field_validator("unit", mode="before")
    @classmethod
    def _check_unit(cls, unit: str) -> str:
        if unit is None or unit == "":
            if cls.requires_unit:
                raise ValueError(f"{cls.family} needs an explicit unit")
            logger.debug("No %s unit given, using %s", cls.family, cls.default_unit)
            return cls.default_unit
        return resolve_unit(unit, cls.family)

    def to_si(self) -> float:
        return to_si(self.value, self.unit, self.family)

    def to(self, unit: str) -> float:
        """Magnitude expressed in another unit of the same family."""
        return from_si(self.to_si(), unit, self.family)

    @classmethod
    def from_si(cls, value: float, unit: str = None):
        unit = unit or cls.default_unit
        return cls(value=from_si(value, unit, cls.family), unit=unit)


class Pressure(Quantity):
    family: ClassVar[str] = "pressure"
    default_unit: ClassVar[str] = "Pa"
    requires_unit: ClassVar[bool] = True


class PressureDifference(Quantity):
    family: ClassVar[str] = "pressure_difference"
    default_unit: ClassVar[str] = "Pa"


class Temperature(Quantity):
    family: ClassVar[str] = "temperature"
    default_unit: ClassVar[str] = "C"
    requires_unit: ClassVar[bool] = True


class Length(Quantity):
    family: ClassVar[str] = "length"
    default_unit: ClassVar[str] = "m"


class MassFlow(Quantity):
    family: ClassVar[str] = "mass_flow"
    default_unit: ClassVar[str] = "kg/s"


class Density(Quantity):
    family: ClassVar[str] = "density"
    default_unit: ClassVar[str] = "kg/m3"


class Viscosity(Quantity):
    family: ClassVar[str] = "viscosity"
    default_unit: ClassVar[str] = "Pa.s"


class MolarMass(Quantity):
    family: ClassVar[str] = "molar_mass"
    default_unit: ClassVar[str] = "kg/kmol"
