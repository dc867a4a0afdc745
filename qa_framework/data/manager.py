"""
Test data management.

Loads fixture files (JSON or CSV) from the data directory with an in-process
cache, and synthesizes randomized users, products and orders with Faker.
Generated records are never written anywhere unless ``save`` is called.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar, Union

from faker import Faker
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import FixtureNotFoundError, FixtureParseError
from ..core.logging_config import log_test_data
from .models import (
    Address,
    Dimensions,
    FixtureRecord,
    OrderItem,
    OrderRecord,
    ProductRecord,
    ShippingAddress,
    UserRecord,
)


T = TypeVar("T")

TAX_RATE = 0.08
MAX_SHIPPING = 25.0

ORDER_STATUSES = ["pending", "processing", "shipped", "delivered", "cancelled"]
PAYMENT_METHODS = ["credit_card", "debit_card", "paypal", "apple_pay", "google_pay"]
PRODUCT_TAGS = ["electronics", "clothing", "home", "sports", "books", "toys", "beauty", "automotive"]
PRODUCT_CATEGORIES = ["Electronics", "Clothing", "Home", "Garden", "Sports", "Books", "Toys", "Beauty"]
PRODUCT_MATERIALS = ["Steel", "Wooden", "Cotton", "Plastic", "Granite", "Leather", "Bronze", "Rubber"]

SAMPLE_DATA_FILES = {
    "user": "sample-users.json",
    "product": "sample-products.json",
    "order": "sample-orders.json",
}

DEFAULT_CREDENTIALS = {
    "validUser": {"username": "testuser@example.com", "password": "TestPassword123!"},
    "adminUser": {"username": "admin@example.com", "password": "AdminPassword123!"},
    "invalidUser": {"username": "invalid@example.com", "password": "wrongpassword"},
}

RECORD_TYPES: Dict[str, Type[FixtureRecord]] = {
    "user": UserRecord,
    "product": ProductRecord,
    "order": OrderRecord,
}

Records = Union[FixtureRecord, List[FixtureRecord]]


class TestDataManager:
    """
    Fixture loading and fake-data synthesis for tests.

    One instance per test run; the fixture cache is keyed by file name and
    only ever filled, never rewritten with different content.
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        data_dir: Union[str, Path],
        logger: Optional[logging.Logger] = None,
        seed: Optional[int] = None,
    ):
        """
        Initialize the data manager.

        Args:
            data_dir: Directory holding fixture files
            logger: Optional logger instance
            seed: Seed for reproducible fake data
        """
        self.data_dir = Path(data_dir)
        self.logger = logger or logging.getLogger(__name__)
        self.faker = Faker()
        if seed is not None:
            self.faker.seed_instance(seed)
        self._cache: Dict[str, Any] = {}

    def initialize_data_directory(self) -> None:
        if not self.data_dir.exists():
            self.data_dir.mkdir(parents=True, exist_ok=True)
            self.logger.info(f"Data directory created: {self.data_dir}")

    # Fixtures

    def load_fixture(self, name: str) -> Any:
        """
        Load and parse a named fixture file.

        JSON is assumed when ``name`` has no suffix; ``.csv`` files load as a
        list of row dictionaries. Results are cached by file name.

        Raises:
            FixtureNotFoundError: If the file does not exist
            FixtureParseError: If the file cannot be parsed
        """
        file_name = name if Path(name).suffix else f"{name}.json"
        if file_name in self._cache:
            return self._cache[file_name]

        path = self.data_dir / file_name
        if not path.is_file():
            raise FixtureNotFoundError(
                f"Fixture not found: {file_name}",
                fixture_name=file_name,
                file_path=str(path),
            )

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise FixtureParseError(
                f"Failed to read fixture {file_name}: {e}",
                fixture_name=file_name,
                file_path=str(path),
                reason=str(e),
            )

        if path.suffix.lower() == ".csv":
            data = self._parse_csv(file_name, path, raw)
        else:
            data = self._parse_json(file_name, path, raw)

        self._cache[file_name] = data
        log_test_data(
            self.logger,
            "Fixture loaded",
            file_name=file_name,
            record_count=len(data) if isinstance(data, list) else 1,
        )
        return data

    def _parse_json(self, file_name: str, path: Path, raw: str) -> Any:
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise FixtureParseError(
                f"Malformed JSON fixture {file_name}: {e}",
                fixture_name=file_name,
                file_path=str(path),
                reason=str(e),
            )

    def _parse_csv(self, file_name: str, path: Path, raw: str) -> List[Dict[str, str]]:
        try:
            rows = list(csv.DictReader(raw.splitlines(), strict=True))
        except csv.Error as e:
            raise FixtureParseError(
                f"Malformed CSV fixture {file_name}: {e}",
                fixture_name=file_name,
                file_path=str(path),
                reason=str(e),
            )
        for row in rows:
            if None in row:
                raise FixtureParseError(
                    f"Malformed CSV fixture {file_name}: row has more fields than the header",
                    fixture_name=file_name,
                    file_path=str(path),
                    reason="extra fields",
                )
        return rows

    def load_records(self, name: str, kind: str) -> List[FixtureRecord]:
        """Load a fixture and validate each entry as a ``kind`` record."""
        record_type = self._record_type(kind)
        data = self.load_fixture(name)
        entries = data if isinstance(data, list) else [data]
        try:
            return [record_type.model_validate(entry) for entry in entries]
        except PydanticValidationError as e:
            raise FixtureParseError(
                f"Fixture {name} does not hold valid {kind} records: {e.error_count()} error(s)",
                fixture_name=name,
                file_path=str(self.data_dir / name),
                reason=str(e),
            )

    def get_data(self, key: str) -> Any:
        return self._cache.get(key)

    def set_data(self, key: str, value: Any) -> None:
        self._cache[key] = value
        log_test_data(self.logger, "Data set", key=key, type=type(value).__name__)

    def clear_cache(self) -> None:
        self._cache.clear()
        self.logger.info("Test data cache cleared")

    # Generation

    def generate(self, kind: str, count: int = 1) -> Records:
        """
        Synthesize ``count`` records of ``kind`` (user, product or order).

        Returns a single record when ``count`` is 1, otherwise a list of
        exactly ``count`` records.

        Raises:
            ValueError: For an unknown kind or a count below 1
        """
        self._record_type(kind)
        if count < 1:
            raise ValueError(f"count must be at least 1, got {count}")

        factory = {
            "user": self._make_user,
            "product": self._make_product,
            "order": self._make_order,
        }[kind]
        records = [factory() for _ in range(count)]

        log_test_data(self.logger, f"Fake {kind}s generated", count=count)
        return records[0] if count == 1 else records

    def generate_users(self, count: int = 1) -> Records:
        return self.generate("user", count)

    def generate_products(self, count: int = 1) -> Records:
        return self.generate("product", count)

    def generate_orders(self, count: int = 1) -> Records:
        return self.generate("order", count)

    def _record_type(self, kind: str) -> Type[FixtureRecord]:
        try:
            return RECORD_TYPES[kind]
        except KeyError:
            raise ValueError(f"Unknown record kind: {kind}. Must be one of {list(RECORD_TYPES)}")

    def _address(self) -> Dict[str, str]:
        fake = self.faker
        return {
            "street": fake.street_address(),
            "city": fake.city(),
            "state": fake.state(),
            "zip_code": fake.postcode(),
            "country": fake.country(),
        }

    def _price(self) -> float:
        return round(self.faker.pyfloat(min_value=1, max_value=1000, right_digits=2), 2)

    def _product_name(self) -> str:
        fake = self.faker
        return f"{fake.color_name()} {fake.random_element(PRODUCT_MATERIALS)} {fake.word().title()}"

    def _make_user(self) -> UserRecord:
        fake = self.faker
        return UserRecord(
            id=fake.uuid4(),
            first_name=fake.first_name(),
            last_name=fake.last_name(),
            email=fake.email(),
            phone=fake.phone_number(),
            address=Address(**self._address()),
            date_of_birth=fake.date_of_birth(minimum_age=18, maximum_age=70),
            company=fake.company(),
            job_title=fake.job(),
            username=fake.user_name(),
            password=fake.password(length=12),
            avatar=fake.image_url(),
            website=fake.url(),
            bio=fake.sentence(nb_words=12),
        )

    def _make_product(self) -> ProductRecord:
        fake = self.faker

        def measure(low: float, high: float) -> float:
            return round(fake.pyfloat(min_value=low, max_value=high, right_digits=1), 1)

        return ProductRecord(
            id=fake.uuid4(),
            name=self._product_name(),
            description=fake.paragraph(nb_sentences=2),
            price=self._price(),
            category=fake.random_element(PRODUCT_CATEGORIES),
            brand=fake.company(),
            sku=fake.bothify("????####").upper(),
            in_stock=fake.pybool(),
            stock_quantity=fake.pyint(min_value=0, max_value=1000),
            rating=measure(1, 5),
            images=[fake.image_url() for _ in range(3)],
            tags=fake.random_elements(
                PRODUCT_TAGS, length=fake.pyint(min_value=1, max_value=3), unique=True
            ),
            dimensions=Dimensions(
                length=measure(1, 100),
                width=measure(1, 100),
                height=measure(1, 100),
                weight=measure(0.1, 50),
            ),
        )

    def _make_order(self) -> OrderRecord:
        fake = self.faker
        items = []
        for _ in range(fake.pyint(min_value=1, max_value=5)):
            price = self._price()
            quantity = fake.pyint(min_value=1, max_value=3)
            items.append(
                OrderItem(
                    product_id=fake.uuid4(),
                    product_name=self._product_name(),
                    price=price,
                    quantity=quantity,
                    total=round(price * quantity, 2),
                )
            )

        subtotal = round(sum(item.total for item in items), 2)
        shipping = round(fake.pyfloat(min_value=0, max_value=MAX_SHIPPING, right_digits=2), 2)
        tax = round(subtotal * TAX_RATE, 2)

        return OrderRecord(
            id=fake.uuid4(),
            order_number=fake.numerify("########"),
            customer_id=fake.uuid4(),
            status=fake.random_element(ORDER_STATUSES),
            order_date=fake.date_time_between(start_date="-30d", end_date="now"),
            items=items,
            subtotal=subtotal,
            tax=tax,
            shipping=shipping,
            total=round(subtotal + tax + shipping, 2),
            shipping_address=ShippingAddress(name=fake.name(), **self._address()),
            payment_method=fake.random_element(PAYMENT_METHODS),
        )

    # Persistence

    def save(self, data: Any, file_name: str, format: str = "json") -> Path:
        """
        Write records (or plain data) to a file in the data directory.

        Args:
            data: A record, a list of records, or JSON-compatible data
            file_name: Target file name
            format: "json" or "csv"

        Returns:
            Path of the written file
        """
        if format not in ("json", "csv"):
            raise ValueError(f"Unsupported format: {format}")

        self.initialize_data_directory()
        path = self.data_dir / file_name
        payload = self._to_plain(data)

        if format == "json":
            path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        else:
            rows = payload if isinstance(payload, list) else [payload]
            self._write_csv(path, rows)

        log_test_data(
            self.logger,
            "Data saved to file",
            file_name=file_name,
            format=format,
            record_count=len(payload) if isinstance(payload, list) else 1,
        )
        return path

    @staticmethod
    def _to_plain(data: Any) -> Any:
        if isinstance(data, FixtureRecord):
            return data.to_fixture()
        if isinstance(data, (list, tuple)):
            return [item.to_fixture() if isinstance(item, FixtureRecord) else item for item in data]
        return data

    @staticmethod
    def _write_csv(path: Path, rows: List[Dict[str, Any]]) -> None:
        headers: List[str] = []
        for row in rows:
            for key in row:
                if key not in headers:
                    headers.append(key)

        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=headers)
            writer.writeheader()
            for row in rows:
                writer.writerow(
                    {
                        key: json.dumps(value) if isinstance(value, (dict, list)) else value
                        for key, value in row.items()
                    }
                )

    def create_default_credentials(self, file_name: str = "test-credentials.json") -> Path:
        """Write the default credentials fixture if it does not exist yet."""
        self.initialize_data_directory()
        path = self.data_dir / file_name
        if not path.exists():
            path.write_text(json.dumps(DEFAULT_CREDENTIALS, indent=2), encoding="utf-8")
            self.logger.info("Created default test credentials file")
        return path

    # Random picks

    def random_element(self, items: Sequence[T]) -> T:
        return self.faker.random_element(list(items))

    def random_elements(self, items: Sequence[T], count: int) -> List[T]:
        return list(self.faker.random_elements(list(items), length=count, unique=True))
