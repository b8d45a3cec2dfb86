"""Tests for RecordProjector."""

import json
from datetime import UTC, date, datetime
from uuid import UUID

import pytest

from auditmirror.audit.fields import layout_for
from auditmirror.audit.models import ColumnKind, ColumnSpec
from auditmirror.audit.projector import RecordProjector, format_timestamp, to_json
from auditmirror.db.errors import RecordProjectionError
from tests.factories import (
    Address,
    Customer,
    Invoice,
    OrderStatus,
    RecordFactory,
    Shipment,
)


@pytest.fixture
def projector() -> RecordProjector:
    return RecordProjector()


class TestProject:
    """Tests for RecordProjector.project."""

    def test_only_tagged_fields(self, projector: RecordProjector) -> None:
        """Should project only auditable fields of an order."""
        row = projector.project(RecordFactory.order(id=9, status="paid"))
        assert row.columns == ["status"]
        assert row.values == ["paid"]

    def test_columns_follow_layout(self, projector: RecordProjector) -> None:
        row = projector.project(RecordFactory.customer())
        assert row.columns == [
            c for c in layout_for(Customer).columns if c != "address"
        ]

    def test_normalized_values(self, projector: RecordProjector) -> None:
        customer = RecordFactory.customer(
            tier=3,
            active=False,
            balance=12.5,
            tags=["vip", "eu"],
            settings={"lang": "nb"},
            status=OrderStatus.PAID,
            signed_up_at=datetime(2024, 3, 1, 9, 30, 15, tzinfo=UTC),
        )
        values = projector.project(customer).as_dict()
        assert values["name"] == "Ada"
        assert values["email_address"] == "ada@example.com"
        assert values["display_name"] == "ada"
        assert values["tier"] == 3
        assert values["active"] is False
        assert values["balance"] == 12.5
        assert json.loads(values["tags"]) == ["vip", "eu"]
        assert json.loads(values["settings"]) == {"lang": "nb"}
        assert values["status"] == "paid"
        assert values["signed_up_at"] == "2024-03-01 09:30:15"

    def test_empty_string_as_null(self, projector: RecordProjector) -> None:
        row = projector.project(RecordFactory.customer(nickname=""))
        assert row.as_dict()["display_name"] is None

    def test_empty_string_kept_when_disabled(self) -> None:
        projector = RecordProjector(empty_string_as_null=False)
        row = projector.project(RecordFactory.customer(nickname=""))
        assert row.as_dict()["display_name"] == ""

    def test_nested_record_dropped_by_default(self, projector: RecordProjector) -> None:
        customer = RecordFactory.customer(address=Address(street="1 Main", city="Oslo"))
        assert "address" not in projector.project(customer).columns

    def test_nested_record_as_json(self) -> None:
        projector = RecordProjector(nested_records="json")
        customer = RecordFactory.customer(address=Address(street="1 Main", city="Oslo"))
        values = projector.project(customer).as_dict()
        assert json.loads(values["address"]) == {"street": "1 Main", "city": "Oslo"}

    def test_nested_record_none_as_null(self) -> None:
        projector = RecordProjector(nested_records="json")
        values = projector.project(RecordFactory.customer()).as_dict()
        assert values["address"] is None

    def test_zero_timestamp_is_null(self, projector: RecordProjector) -> None:
        """Should store the zero time value as NULL."""
        values = projector.project(Invoice(number="A-1", amount=5)).as_dict()
        assert values == {"invoice_number": "A-1", "amount": 5, "issued_at": None}

    def test_dataclass_timestamp(self, projector: RecordProjector) -> None:
        invoice = Invoice(number="A-2", issued_at=datetime(2023, 12, 31, 23, 59, 59))
        assert projector.project(invoice).as_dict()["issued_at"] == "2023-12-31 23:59:59"

    def test_rejects_non_record(self, projector: RecordProjector) -> None:
        with pytest.raises(RecordProjectionError):
            projector.project({"status": "paid"})


class TestExplicitTemporalTypes:
    """Tests for fields declared with a date or time SQL type."""

    def test_native_values_kept(self, projector: RecordProjector) -> None:
        """Should bind datetime and date objects, not rendered text."""
        shipped = datetime(2024, 5, 2, 8, 0, tzinfo=UTC)
        shipment = Shipment(shipped_at=shipped, due_on=date(2024, 5, 9), reference="R-1")
        values = projector.project(shipment).as_dict()
        assert values == {"shipped_at": shipped, "due_on": date(2024, 5, 9), "reference": "R-1"}
        assert type(values["shipped_at"]) is datetime
        assert type(values["due_on"]) is date

    def test_zero_timestamp_still_null(self, projector: RecordProjector) -> None:
        values = projector.project(Shipment(shipped_at=datetime.min)).as_dict()
        assert values["shipped_at"] is None
        assert values["due_on"] is None
        assert values["reference"] is None

    def test_derived_timestamp_still_text(self, projector: RecordProjector) -> None:
        invoice = Invoice(number="A-3", issued_at=datetime(2024, 1, 2, 3, 4, 5))
        assert projector.project(invoice).as_dict()["issued_at"] == "2024-01-02 03:04:05"


class TestNormalize:
    """Tests for RecordProjector.normalize."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, None),
            (True, True),
            (7, 7),
            (1.5, 1.5),
            ("x", "x"),
            ("", None),
            (date(2024, 1, 2), "2024-01-02"),
            (UUID("12345678-1234-5678-1234-567812345678"), "12345678-1234-5678-1234-567812345678"),
            (OrderStatus.PENDING, "pending"),
            ((1, 2), "[1, 2]"),
        ],
    )
    def test_values(self, projector: RecordProjector, value: object, expected: object) -> None:
        assert projector.normalize(value) == expected

    def test_set_is_sorted(self, projector: RecordProjector) -> None:
        assert projector.normalize({"b", "a"}) == '["a", "b"]'


class TestProjectMapping:
    """Tests for RecordProjector.project_mapping."""

    def test_keeps_every_column_in_order(self, projector: RecordProjector) -> None:
        row = projector.project_mapping({"id": 1, "status": "paid", "note": ""})
        assert row.columns == ["id", "status", "note"]
        assert row.values == [1, "paid", ""]

    def test_composite_values_encoded(self, projector: RecordProjector) -> None:
        row = projector.project_mapping({"id": 1, "tags": ["a"]})
        assert row.values == [1, '["a"]']


class TestColumnSpecs:
    """Tests for RecordProjector.column_specs."""

    def test_drop_policy_omits_nested(self, projector: RecordProjector) -> None:
        specs = projector.column_specs(layout_for(Customer))
        names = [s.name for s in specs]
        assert "address" not in names
        assert ColumnSpec("email_address", ColumnKind.TEXT, "VARCHAR(320)") in specs

    def test_json_policy_stores_nested_as_text(self) -> None:
        projector = RecordProjector(nested_records="json")
        specs = {s.name: s for s in projector.column_specs(layout_for(Customer))}
        assert specs["address"].kind == ColumnKind.TEXT

    def test_specs_match_projected_columns(self, projector: RecordProjector) -> None:
        specs = projector.column_specs(layout_for(Customer))
        row = projector.project(RecordFactory.customer())
        assert [s.name for s in specs] == row.columns


class TestHelpers:
    """Tests for module-level helpers."""

    def test_format_timestamp_zero(self) -> None:
        assert format_timestamp(datetime.min) is None

    def test_format_timestamp_drops_fraction(self) -> None:
        assert format_timestamp(datetime(2024, 1, 1, 8, 0, 0, 999)) == "2024-01-01 08:00:00"

    def test_to_json_nested_model(self) -> None:
        assert json.loads(to_json([Address(street="s", city="c")])) == [
            {"street": "s", "city": "c"}
        ]
