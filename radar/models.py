from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

WILDCARD = "*"


class TableRef(BaseModel):
    """A table identifier qualified by a schema."""

    model_config = ConfigDict(populate_by_name=True)

    table: Optional[str] = None
    schema_: Optional[str] = Field(None, alias="schema")


class QueryDescriptor(BaseModel):
    """The accumulated, not yet compiled representation of a query."""

    model_config = ConfigDict(populate_by_name=True)

    select: Optional[Union[str, List[Any]]] = None
    from_: Optional[Union[str, TableRef]] = Field(None, alias="from")
    where: Optional[Dict[str, Any]] = None
    insert: Optional[Dict[str, Any]] = None
    into: Optional[str] = None
    limit: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the descriptor using wire names and without unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def is_empty(self) -> bool:
        return not self.to_dict()


class CompiledStatement(BaseModel):
    """A dialect-specific statement ready to be run by a driver."""

    sql: str
    params: Dict[str, Any] = Field(default_factory=dict)
    dialect: str


class Lease(BaseModel):
    """An acquired connection together with what is needed to release it."""

    connection: Any
    release_token: Any = None
