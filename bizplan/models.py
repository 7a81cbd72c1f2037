"""Planning records: projects, business cases, cash plans, rows, scenarios and memos."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any

from bizplan.defaults import DEFAULT_CURRENCY, DEFAULT_HORIZON_MONTHS, DEFAULT_INITIAL_CASH
from bizplan.schema import (
    BUSINESS_CASE_STATUSES,
    BUSINESS_CASE_TYPES,
    coerce_float,
    sanitize_category,
    sanitize_choice,
    sanitize_horizon,
    sanitize_monthly_values,
    sanitize_scenario_params,
    sanitize_scenario_type,
    sanitize_start_month,
)


MEMO_SECTIONS = [
    {"key": "problem", "label": "Problem", "description": "Welches Problem löst ihr?"},
    {"key": "solution", "label": "Lösung", "description": "Wie löst ihr das Problem?"},
    {"key": "market", "label": "Markt", "description": "Wie groß ist der Markt?"},
    {"key": "competition", "label": "Wettbewerb", "description": "Wer sind eure Konkurrenten?"},
    {"key": "gtm", "label": "Go-to-Market", "description": "Wie erreicht ihr eure Kunden?"},
    {"key": "finances", "label": "Finanzen", "description": "Finanzielle Planung und Ziele"},
    {"key": "risks", "label": "Risiken", "description": "Welche Risiken gibt es?"},
]
MEMO_SECTION_KEYS = [s["key"] for s in MEMO_SECTIONS]


@dataclass
class Project:
    id: str
    name: str
    owner: str
    description: str = ""
    created_at: str = ""
    updated_at: str = ""

    def to_record(self) -> dict:
        return asdict(self)

    @classmethod
    def from_record(cls, record: dict) -> "Project":
        return cls(
            id=str(record.get("id", "")),
            name=str(record.get("name", "")),
            owner=str(record.get("owner", "")),
            description=str(record.get("description") or ""),
            created_at=str(record.get("created_at", "")),
            updated_at=str(record.get("updated_at", "")),
        )


@dataclass
class BusinessCase:
    id: str
    project_id: str
    name: str
    description: str = ""
    type: str = "custom"
    status: str = "draft"
    created_at: str = ""
    updated_at: str = ""

    def to_record(self) -> dict:
        return asdict(self)

    @classmethod
    def from_record(cls, record: dict) -> "BusinessCase":
        return cls(
            id=str(record.get("id", "")),
            project_id=str(record.get("project_id", "")),
            name=str(record.get("name", "")),
            description=str(record.get("description") or ""),
            type=sanitize_choice(record.get("type"), BUSINESS_CASE_TYPES, "custom"),
            status=sanitize_choice(record.get("status"), BUSINESS_CASE_STATUSES, "draft"),
            created_at=str(record.get("created_at", "")),
            updated_at=str(record.get("updated_at", "")),
        )


@dataclass
class CashPlan:
    """Monthly plan header; index 0 of every row is `start_month`."""

    id: str
    business_case_id: str
    start_month: date
    months: int = DEFAULT_HORIZON_MONTHS
    initial_cash: float = DEFAULT_INITIAL_CASH
    currency: str = DEFAULT_CURRENCY
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self):
        self.months = sanitize_horizon(self.months)
        self.start_month = sanitize_start_month(self.start_month)
        self.initial_cash = coerce_float(self.initial_cash)

    def to_record(self) -> dict:
        out = asdict(self)
        out["start_month"] = self.start_month.isoformat()
        return out

    @classmethod
    def from_record(cls, record: dict) -> "CashPlan":
        return cls(
            id=str(record.get("id", "")),
            business_case_id=str(record.get("business_case_id", "")),
            start_month=record.get("start_month"),
            months=record.get("months", DEFAULT_HORIZON_MONTHS),
            initial_cash=record.get("initial_cash", DEFAULT_INITIAL_CASH),
            currency=str(record.get("currency") or DEFAULT_CURRENCY),
            created_at=str(record.get("created_at", "")),
            updated_at=str(record.get("updated_at", "")),
        )


@dataclass
class CashPlanRow:
    id: str
    cash_plan_id: str
    category: str
    name: str
    monthly_values: list[float] = field(default_factory=list)
    sort_order: int = 0
    created_at: str = ""
    updated_at: str = ""

    def value_at(self, month: int) -> float:
        """Value for a month index; 0.0 for any month the row does not cover."""
        if 0 <= month < len(self.monthly_values):
            return self.monthly_values[month]
        return 0.0

    def fit_to_horizon(self, horizon: int) -> "CashPlanRow":
        self.monthly_values = sanitize_monthly_values(self.monthly_values, horizon)
        return self

    def to_record(self) -> dict:
        return asdict(self)

    @classmethod
    def from_record(cls, record: dict, horizon: int | None = None) -> "CashPlanRow":
        raw_values = record.get("monthly_values")
        if horizon is None:
            horizon = len(raw_values) if isinstance(raw_values, list) else 0
        try:
            sort_order = int(record.get("sort_order", 0))
        except (TypeError, ValueError):
            sort_order = 0
        return cls(
            id=str(record.get("id", "")),
            cash_plan_id=str(record.get("cash_plan_id", "")),
            category=sanitize_category(record.get("category")),
            name=str(record.get("name", "")),
            monthly_values=sanitize_monthly_values(raw_values, horizon),
            sort_order=sort_order,
            created_at=str(record.get("created_at", "")),
            updated_at=str(record.get("updated_at", "")),
        )


@dataclass
class ScenarioParams:
    """Percent parameters; 0 means "no change"."""

    revenue_growth_pct: float = 0.0
    cost_growth_pct: float = 0.0
    # Stored and editable, not applied by the projection engine.
    headcount_growth_pct: float = 0.0
    initial_cash_adjustment_pct: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Any) -> "ScenarioParams":
        return cls(**sanitize_scenario_params(raw))


@dataclass
class Scenario:
    id: str
    cash_plan_id: str
    name: str
    type: str = "custom"
    params: ScenarioParams = field(default_factory=ScenarioParams)
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_base(self) -> bool:
        return self.type == "base"

    def to_record(self) -> dict:
        out = asdict(self)
        out["params"] = self.params.to_dict()
        return out

    @classmethod
    def from_record(cls, record: dict) -> "Scenario":
        # Older records keep the parameter set under "parameters".
        raw_params = record.get("params", record.get("parameters"))
        return cls(
            id=str(record.get("id", "")),
            cash_plan_id=str(record.get("cash_plan_id", "")),
            name=str(record.get("name", "")),
            type=sanitize_scenario_type(record.get("type")),
            params=ScenarioParams.from_dict(raw_params),
            created_at=str(record.get("created_at", "")),
            updated_at=str(record.get("updated_at", "")),
        )


@dataclass
class Memo:
    id: str
    business_case_id: str
    sections: dict[str, str] = field(default_factory=dict)
    created_at: str = ""
    updated_at: str = ""

    def section(self, key: str) -> str:
        return str(self.sections.get(key) or "")

    def to_record(self) -> dict:
        out = {
            "id": self.id,
            "business_case_id": self.business_case_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        for key in MEMO_SECTION_KEYS:
            out[key] = self.section(key)
        return out

    @classmethod
    def from_record(cls, record: dict) -> "Memo":
        return cls(
            id=str(record.get("id", "")),
            business_case_id=str(record.get("business_case_id", "")),
            sections={key: str(record.get(key) or "") for key in MEMO_SECTION_KEYS},
            created_at=str(record.get("created_at", "")),
            updated_at=str(record.get("updated_at", "")),
        )
