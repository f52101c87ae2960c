from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Optional

DATA_TYPES = ("text", "number", "boolean", "date", "email", "select")


@dataclass(frozen=True)
class CellCoords:
    row: Optional[int] = None
    col: Optional[int] = None

    def is_valid(self) -> bool:
        return self.row is not None and self.col is not None


@dataclass(frozen=True)
class SelectionRange:
    start: CellCoords
    end: CellCoords

    def normalized(self) -> "SelectionRange":
        r0, r1 = sorted((self.start.row, self.end.row))
        c0, c1 = sorted((self.start.col, self.end.col))
        return SelectionRange(CellCoords(r0, c0), CellCoords(r1, c1))

    @property
    def row_count(self) -> int:
        return abs(self.end.row - self.start.row) + 1

    @property
    def col_count(self) -> int:
        return abs(self.end.col - self.start.col) + 1

    def is_single_cell(self) -> bool:
        return self.start == self.end


@dataclass
class FillDragState:
    is_dragging: bool = False
    start_cell: Optional[CellCoords] = None
    end_row: Optional[int] = None


@dataclass
class ColumnResizeState:
    is_resizing: bool = False
    column_index: Optional[int] = None
    start_x: Optional[float] = None


@dataclass
class RowResizeState:
    is_resizing: bool = False
    row_index: Optional[int] = None
    start_y: Optional[float] = None


@dataclass
class ActiveEditorState:
    row: int
    col: int
    type: str
    original_value: Any = None
    buffer: str = ""
    dropdown_index: Optional[int] = None


@dataclass(frozen=True)
class CellBounds:
    x: float
    y: float
    width: float
    height: float

    def contains(self, x, y) -> bool:
        return self.x <= x <= self.x + self.width and self.y <= y <= self.y + self.height


@dataclass
class CellUpdateEvent:
    row_index: int
    column_keys: list
    data: dict
    old_data: dict = field(default_factory=dict)


@dataclass(frozen=True)
class SelectOption:
    id: Any
    name: str


@dataclass(frozen=True)
class ColumnSchema:
    type: str
    label: str = ""
    required: bool = False
    maxlength: Optional[int] = None
    decimal: Optional[bool] = None
    values: tuple = ()
    word_wrap: bool = False

    @classmethod
    def from_dict(cls, key: str, attrs) -> "ColumnSchema":
        if isinstance(attrs, ColumnSchema):
            return attrs
        col_type = attrs.get("type", "text")
        if col_type not in DATA_TYPES:
            raise ValueError(f"Column '{key}' has unsupported type '{col_type}'")
        values = []
        for opt in attrs.get("values") or []:
            if isinstance(opt, SelectOption):
                values.append(opt)
            else:
                values.append(SelectOption(opt["id"], str(opt["name"])))
        maxlength = attrs.get("maxlength")
        return cls(
            type=col_type,
            label=str(attrs.get("label") or key),
            required=bool(attrs.get("required", False)),
            maxlength=int(maxlength) if maxlength else None,
            decimal=attrs.get("decimal"),
            values=tuple(values),
            word_wrap=bool(attrs.get("word_wrap", False)),
        )

    def option_for_id(self, value) -> Optional[SelectOption]:
        for opt in self.values:
            if opt.id == value:
                return opt
        return None


def parse_schema(schema) -> MappingProxyType:
    """Normalize a {key: attrs} mapping into a read-only, ordered {key: ColumnSchema} map."""
    if not schema:
        raise ValueError("Schema must define at least one column")
    return MappingProxyType(
        {str(key): ColumnSchema.from_dict(str(key), attrs) for key, attrs in schema.items()}
    )
