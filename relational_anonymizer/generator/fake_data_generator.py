"""
Fake data generation for realistic anonymized values.

This module defines the FakeDataGenerator class, which produces plausible
replacement values with Faker. Generation may read sibling fields of the row
to stay internally consistent, but never the value being replaced.
"""

from __future__ import annotations

import datetime
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from faker import Faker

from relational_anonymizer.models.config import FinancialRange
from relational_anonymizer.models.context import AnonymizationContext
from relational_anonymizer.models.field import DataType
from relational_anonymizer.utils.text import ascii_slug, column_matches, digit_count

EMAIL_DOMAINS = ("test.local", "example.com", "demo.local", "training.local")

# Algerian mobile operator prefixes (Djezzy, Mobilis, Ooredoo)
MOBILE_PREFIXES = ("055", "056", "057", "066", "067", "077", "078")

ALGERIAN_CITIES = ("Alger", "Oran", "Constantine", "Annaba", "Blida", "Batna", "Sétif")
STREET_TYPES = ("Rue", "Avenue", "Boulevard", "Place")
STREET_NAMES = ("1er Novembre", "Didouche Mourad", "Emir Abdelkader", "Ahmed Zabana")

COMPANY_TYPES = ("SARL", "SPA", "EURL", "SNC")
BUSINESS_WORDS = ("Tech", "Solutions", "Services", "Group", "Consulting")

# Place name fragment -> international dialing code
DIALING_CODES = {
    "alg": "213",
    "oran": "213",
    "constantine": "213",
    "annaba": "213",
    "blida": "213",
    "batna": "213",
    "setif": "213",
    "sétif": "213",
    "france": "33",
    "paris": "33",
    "lyon": "33",
    "marseille": "33",
    "maroc": "212",
    "morocco": "212",
    "casablanca": "212",
    "tunis": "216",
}

# Monthly DZD ranges observed on the platform
FINANCIAL_RANGES = {
    "rent": FinancialRange(15000, 80000),
    "deposit": FinancialRange(30000, 160000),
    "fee": FinancialRange(1000, 10000),
    "utility": FinancialRange(2000, 15000),
    "maintenance": FinancialRange(5000, 25000),
    "other": FinancialRange(1000, 50000),
}


def quantize_like(value: float, like: Decimal) -> Decimal:
    """Convert ``value`` to a Decimal with as many places as ``like``.

    Example:
        >>> quantize_like(8123.456, Decimal("8500.00"))
        Decimal('8123.46')
    """
    exponent = like.as_tuple().exponent
    places = -exponent if isinstance(exponent, int) and exponent < 0 else 0
    if places == 0:
        return Decimal(int(round(value)))
    return Decimal(str(round(value, places))).quantize(Decimal(1).scaleb(-places))


@dataclass(frozen=True)
class FakeDataOptions:
    """Options for a single generation call.

    Attributes:
        context_aware: Choose the strategy from the column name and keep the
            value plausible with its sibling fields.
        preserve_format: Keep separators and length of formatted values.
        financial_range: Bounds for financial amounts.
    """

    context_aware: bool = False
    preserve_format: bool = True
    financial_range: Optional[FinancialRange] = None


class FakeDataGenerator:
    """Generates realistic fake values with Faker.

    The generator holds no state about tables or previous calls; repeated
    calls for the same original value are not expected to agree.

    Attributes:
        faker: Faker instance used for every draw.
        locale: Faker locale.

    Example:
        >>> generator = FakeDataGenerator(seed=7)
        >>> context = AnonymizationContext("users", "phone", "0551234567")
        >>> phone = generator.generate_fake_data(
        ...     DataType.STRING, "0551234567", context,
        ...     FakeDataOptions(context_aware=True),
        ... )
        >>> len(phone)
        10
    """

    def __init__(self, locale: str = "fr_FR", seed: Optional[int] = None) -> None:
        """Initialize a FakeDataGenerator.

        Args:
            locale: Faker locale for names, companies and text.
            seed: Optional seed for reproducible output.
        """
        self.locale = locale
        self.faker = Faker(locale)
        if seed is not None:
            self.faker.seed_instance(seed)

    @property
    def random(self):
        return self.faker.random

    def generate_fake_data(
        self,
        data_type: DataType,
        original_value: Any,
        context: AnonymizationContext,
        options: Optional[FakeDataOptions] = None,
    ) -> Any:
        """Generate a fake value of the same primitive type.

        Args:
            data_type: Primitive type of the original value.
            original_value: Value being replaced. Only its type and shape
                are used.
            context: Field context; sibling fields may be read when
                ``options.context_aware`` is set.
            options: Generation options.

        Returns:
            Replacement value.
        """
        options = options or FakeDataOptions()
        if options.context_aware:
            return self._generate_context_aware(data_type, original_value, context, options)
        return self.generate_by_type(data_type, original_value)

    def _generate_context_aware(
        self,
        data_type: DataType,
        original_value: Any,
        context: AnonymizationContext,
        options: FakeDataOptions,
    ) -> Any:
        column = context.column_name

        if column_matches(column, ("email", "mail", "courriel")):
            display_name = context.find_anonymized_sibling("name", "nom")
            if not isinstance(display_name, str):
                display_name = None
            return self.generate_email(context, display_name)
        if column_matches(column, ("phone", "telephone", "tel", "mobile")):
            return self.generate_phone(original_value, context, options.preserve_format)
        if column_matches(column, ("name", "nom", "prenom")):
            return self.generate_name(column)
        if column_matches(column, ("address", "adresse", "street")):
            return self.generate_address()
        if column_matches(column, ("city", "ville")):
            return self.generate_city()
        if column_matches(column, ("amount", "price", "cost", "montant", "prix")):
            return self.generate_financial_amount(original_value, options.financial_range)
        if column_matches(column, ("date", "time", "created", "updated", "birth")):
            return self.generate_date(original_value, column)
        if column_matches(column, ("company", "organization", "entreprise")):
            return self.generate_company_name()
        if column_matches(column, ("description", "comment", "note")):
            return self.generate_description(original_value)

        return self.generate_by_type(data_type, original_value)

    def generate_by_type(self, data_type: DataType, original_value: Any) -> Any:
        """Generate a type-preserving substitute without any context."""
        if data_type == DataType.BOOLEAN:
            return self.faker.pybool()

        if data_type == DataType.NUMBER:
            if isinstance(original_value, int) and not isinstance(original_value, bool):
                digits = digit_count(original_value)
                value = self.faker.random_number(digits=digits, fix_len=digits > 1)
                return -value if original_value < 0 else value
            if isinstance(original_value, float):
                return round(self.random.uniform(1, max(abs(original_value) * 2, 10)), 2)
            if isinstance(original_value, Decimal):
                high = max(abs(float(original_value)) * 2, 10)
                return quantize_like(self.random.uniform(1, high), original_value)
            return self.faker.random_int(min=1, max=1000)

        if data_type == DataType.UUID:
            value = str(uuid.UUID(int=self.random.getrandbits(128), version=4))
            if isinstance(original_value, uuid.UUID):
                return uuid.UUID(value)
            return value

        if data_type == DataType.DATE:
            return self.generate_date(original_value, "")

        if data_type == DataType.JSON:
            return self._generate_structure(original_value)

        if isinstance(original_value, str):
            word_count = max(1, min(len(original_value.split()), 10))
            text = " ".join(self.faker.words(nb=word_count))
            if len(text) > len(original_value) > 0:
                text = text[: len(original_value)].rstrip() or text
            return text
        return " ".join(self.faker.words(nb=3))

    def _generate_structure(self, value: Any) -> Any:
        # Same shape, every leaf replaced
        from relational_anonymizer.engine.core_engine import detect_data_type

        if value is None:
            return None
        if isinstance(value, dict):
            return {k: self._generate_structure(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            items = [self._generate_structure(v) for v in value]
            return tuple(items) if isinstance(value, tuple) else items
        return self.generate_by_type(detect_data_type(value), value)

    def generate_email(
        self, context: AnonymizationContext, display_name: Optional[str] = None
    ) -> str:
        """Generate a syntactically valid email address.

        When ``display_name`` is given the local part is derived from it,
        otherwise a random ``user<token>`` local part is used.
        """
        domain = self.faker.random_element(EMAIL_DOMAINS)
        if display_name:
            slug = ascii_slug(display_name)
            if slug:
                return f"{slug}{self.faker.random_int(min=1, max=99)}@{domain}"
        token = self.faker.lexify("??????", letters="abcdefghijklmnopqrstuvwxyz0123456789")
        return f"user{token}@{domain}"

    def generate_name(self, column_name: str) -> str:
        """Generate a first, last or full name based on the column name."""
        column = column_name.lower()
        if "first" in column or "prenom" in column or "prénom" in column:
            return self.faker.first_name()
        if "last" in column or "surname" in column or column.endswith("nom"):
            return self.faker.last_name()
        return f"{self.faker.first_name()} {self.faker.last_name()}"

    def generate_phone(
        self,
        original_value: Any,
        context: Optional[AnonymizationContext] = None,
        preserve_format: bool = True,
    ) -> str:
        """Generate a phone number in the same format class as the original.

        Separators and digit count are preserved. National numbers
        (``0XXXXXXXXX``) get an Algerian mobile prefix; international numbers
        get the dialing code suggested by an address sibling field.
        """
        shape = original_value if isinstance(original_value, str) else ""
        digit_slots = sum(ch.isdigit() for ch in shape)

        if not preserve_format or digit_slots == 0:
            prefix = self.faker.random_element(MOBILE_PREFIXES)
            return f"{prefix}{self.faker.numerify('#######')}"

        digits = self._phone_digits(shape, digit_slots, context)

        result = []
        position = 0
        for ch in shape:
            if ch.isdigit():
                result.append(digits[position])
                position += 1
            else:
                result.append(ch)
        return "".join(result)

    def _phone_digits(
        self,
        shape: str,
        digit_slots: int,
        context: Optional[AnonymizationContext],
    ) -> str:
        stripped = shape.lstrip()
        lead = ""
        if stripped.startswith("+") or stripped.startswith("00"):
            international = stripped[1:] if stripped.startswith("+") else stripped[2:]
            code = self._dialing_code(context)
            if code is None:
                # Keep the leading digits of the original country code
                code = "".join(ch for ch in international[:3] if ch.isdigit())
            lead = code if stripped.startswith("+") else "00" + code
        elif stripped.startswith("0") and digit_slots == 10:
            lead = self.faker.random_element(MOBILE_PREFIXES)
        elif stripped.startswith("0"):
            lead = "0"

        lead = lead[:digit_slots]
        remaining = digit_slots - len(lead)
        return lead + "".join(str(self.random.randint(0, 9)) for _ in range(remaining))

    def _dialing_code(self, context: Optional[AnonymizationContext]) -> Optional[str]:
        if context is None:
            return None
        place = context.find_sibling("address", "adresse", "city", "ville", "country", "pays")
        if not isinstance(place, str):
            return None
        lowered = place.lower()
        for fragment, code in DIALING_CODES.items():
            if fragment in lowered:
                return code
        return None

    def generate_address(self) -> str:
        """Generate an Algerian street address."""
        number = self.faker.random_int(min=1, max=999)
        street_type = self.faker.random_element(STREET_TYPES)
        street_name = self.faker.random_element(STREET_NAMES)
        city = self.faker.random_element(ALGERIAN_CITIES)
        return f"{number} {street_type} {street_name}, {city}"

    def generate_city(self) -> str:
        return self.faker.random_element(ALGERIAN_CITIES)

    def generate_financial_amount(
        self, original_value: Any, financial_range: Optional[FinancialRange] = None
    ) -> Any:
        """Generate an amount within ``financial_range`` or the original's magnitude.

        Integers stay integers when the range bounds allow it, and Decimal
        amounts come back as Decimal with the same number of places.
        """
        as_int = isinstance(original_value, int) and not isinstance(original_value, bool)
        bounds = financial_range

        if bounds is None:
            if isinstance(original_value, (int, float, Decimal)) and not isinstance(
                original_value, bool
            ):
                magnitude = abs(original_value)
                if magnitude < 100:
                    bounds = FinancialRange(10, 100)
                elif magnitude < 1000:
                    bounds = FinancialRange(100, 1000)
                elif magnitude < 10000:
                    bounds = FinancialRange(1000, 10000)
                else:
                    bounds = FinancialRange(10000, 100000)
            else:
                bounds = FinancialRange(100, 10000)
                as_int = True

        if isinstance(original_value, Decimal):
            value = quantize_like(self._draw_in_range(bounds, False), original_value)
            return min(max(value, Decimal(str(bounds.min))), Decimal(str(bounds.max)))
        return self._draw_in_range(bounds, as_int)

    def generate_financial_data(
        self, kind: str = "other", original_amount: Optional[float] = None
    ) -> int:
        """Generate a DZD amount for a kind of charge.

        Args:
            kind: One of rent, deposit, fee, utility, maintenance, other.
            original_amount: When positive, the draw stays within the same
                order of magnitude, clipped to the kind's range.

        Returns:
            Integer amount.

        Raises:
            ValueError: If ``kind`` is unknown.
        """
        try:
            bounds = FINANCIAL_RANGES[kind]
        except KeyError:
            raise ValueError(
                f"Unknown financial kind: {kind!r}. "
                f"Must be one of {sorted(FINANCIAL_RANGES)}"
            ) from None

        if original_amount and original_amount > 0:
            factor = 10 ** (digit_count(int(original_amount)) - 1)
            low = max(factor, bounds.min)
            high = min(factor * 10, bounds.max)
            if low <= high:
                bounds = FinancialRange(low, high)

        return self._draw_in_range(bounds, True)

    def _draw_in_range(self, bounds: FinancialRange, as_int: bool) -> float:
        if as_int:
            low = int(-(-bounds.min // 1))  # ceil
            high = int(bounds.max // 1)
            if low <= high:
                return self.random.randint(low, high)
        value = round(self.random.uniform(bounds.min, bounds.max), 2)
        return min(max(value, bounds.min), bounds.max)

    def generate_date(self, original_value: Any, column_name: str) -> Any:
        """Generate a date in the same representation as the original.

        The column name chooses the window: created (last 2 years), updated
        (last 30 days), birth (18 to 80 years ago), due (next year),
        otherwise the last 90 days.
        """
        column = column_name.lower()
        if "created" in column or "cree" in column:
            value = self.faker.date_time_between(start_date="-2y", end_date="now")
        elif "updated" in column or "modifie" in column:
            value = self.faker.date_time_between(start_date="-30d", end_date="now")
        elif "birth" in column or "naissance" in column:
            born = self.faker.date_of_birth(minimum_age=18, maximum_age=80)
            value = datetime.datetime.combine(born, datetime.time())
        elif "due" in column or "echeance" in column:
            value = self.faker.date_time_between(start_date="now", end_date="+1y")
        else:
            value = self.faker.date_time_between(start_date="-90d", end_date="now")

        if isinstance(original_value, datetime.datetime):
            return value.replace(tzinfo=original_value.tzinfo)
        if isinstance(original_value, datetime.date):
            return value.date()
        if isinstance(original_value, str):
            if len(original_value) == 10:
                return value.date().isoformat()
            separator = "T" if "T" in original_value else " "
            return value.replace(microsecond=0).isoformat(sep=separator)
        return value

    def generate_company_name(self) -> str:
        word = self.faker.random_element(BUSINESS_WORDS)
        company_type = self.faker.random_element(COMPANY_TYPES)
        return f"{self.faker.last_name()} {word} {company_type}"

    def generate_description(self, original_value: Any) -> str:
        """Generate free text with roughly the same number of words."""
        if isinstance(original_value, str) and original_value.strip():
            word_count = min(len(original_value.split()), 10)
            return " ".join(self.faker.words(nb=word_count))
        return self.faker.sentence()

    def generate_batch_data(
        self, count: int, template: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        """Generate ``count`` context-aware records shaped like ``template``.

        Useful for seeding demo environments.
        """
        from relational_anonymizer.engine.core_engine import detect_data_type

        records: List[Dict[str, Any]] = []
        for _ in range(count):
            record: Dict[str, Any] = {}
            for key, value in template.items():
                context = AnonymizationContext(
                    table_name="batch_generation",
                    column_name=key,
                    original_value=value,
                    row_data=template,
                    preserve_relationships=False,
                    anonymized_row=record,
                )
                record[key] = self.generate_fake_data(
                    detect_data_type(value),
                    value,
                    context,
                    FakeDataOptions(context_aware=True),
                )
            records.append(record)
        return records
