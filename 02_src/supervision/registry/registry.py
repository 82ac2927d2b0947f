"""Unit registry: parses raw definitions and indexes unit descriptors."""

from typing import Any, Protocol

from ..errors import InvalidDefinition
from ..logging_config import get_logger
from ..models import (
    DEFAULT_ALLOWED_STATUSES,
    ErrorKind,
    FeatureDescriptor,
    Outcome,
    UnitDescriptor,
)
from ..topics import feature_state_topic, normalize

logger = get_logger(__name__)

DATA_CONNECTION_SUBMODEL = "DataConnection"
FUNCTIONS_SUBMODEL = "Functions"
DEFAULT_BUS_ENDPOINT = "broker.hivemq.com"


def _elements(container: dict, field: str, where: str) -> list:
    """A list-valued field of a submodel or element; absent means empty."""
    value = container.get(field)
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvalidDefinition(f"{where}.{field} must be a list")
    return value


def _properties(elements: list) -> dict[str, Any]:
    """Map idShort -> value over the Property elements of a list."""
    return {
        el["idShort"]: el.get("value")
        for el in elements
        if isinstance(el, dict)
        and el.get("modelType") == "Property"
        and isinstance(el.get("idShort"), str)
    }


def _submodel(raw: dict, id_short: str) -> dict | None:
    for sm in _elements(raw, "submodels", "definition"):
        if isinstance(sm, dict) and sm.get("idShort") == id_short:
            return sm
    return None


def _parse_allowed(value: Any) -> frozenset[str]:
    if value is None:
        return DEFAULT_ALLOWED_STATUSES
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split("|")
    return frozenset(str(s).strip().lower() for s in items if str(s).strip())


def parse_definition(raw: Any) -> UnitDescriptor:
    """
    Parse a raw unit definition into a UnitDescriptor.

    The definition carries a "DataConnection" submodel (CpsId, Name,
    Description, MqttServer, MqttBaseTopic) and an optional "Functions"
    submodel with one element per feature (Name, Description,
    AllowedStatuses as a "|"-separated list).

    Raises:
        InvalidDefinition: identity or topic fields are missing, or the
            submodel structure is malformed.
    """
    if not isinstance(raw, dict):
        raise InvalidDefinition("definition must be an object")

    data_conn = _submodel(raw, DATA_CONNECTION_SUBMODEL)
    if data_conn is None:
        raise InvalidDefinition(f'submodel "{DATA_CONNECTION_SUBMODEL}" missing')

    props = _properties(_elements(data_conn, "submodelElements", DATA_CONNECTION_SUBMODEL))
    unit_id = props.get("CpsId") or props.get("cpsId")
    if not unit_id:
        raise InvalidDefinition("CpsId missing")
    if not isinstance(unit_id, str):
        raise InvalidDefinition("CpsId must be a string")

    base_value = props.get("MqttBaseTopic") or unit_id
    if not isinstance(base_value, str):
        raise InvalidDefinition(f"{unit_id}: MqttBaseTopic must be a string")
    base_topic = normalize(base_value)
    if not base_topic:
        raise InvalidDefinition(f"{unit_id}: base topic is empty")

    features = []
    functions = _submodel(raw, FUNCTIONS_SUBMODEL) or {}
    for el in _elements(functions, "submodelElements", FUNCTIONS_SUBMODEL):
        if not isinstance(el, dict) or not el.get("idShort"):
            continue
        key = el["idShort"]
        if not isinstance(key, str):
            raise InvalidDefinition(f"{unit_id}: feature idShort must be a string")
        fprops = _properties(_elements(el, "value", f"{FUNCTIONS_SUBMODEL}.{key}"))
        features.append(
            FeatureDescriptor(
                key=key,
                name=str(fprops.get("Name") or key),
                description=str(fprops.get("Description") or ""),
                state_topic=feature_state_topic(base_topic, key),
                allowed_statuses=_parse_allowed(fprops.get("AllowedStatuses")),
            )
        )

    return UnitDescriptor(
        id=unit_id,
        name=str(props.get("Name") or props.get("name") or unit_id),
        description=str(props.get("Description") or ""),
        bus_endpoint=str(props.get("MqttServer") or DEFAULT_BUS_ENDPOINT),
        base_topic=base_topic,
        features=tuple(features),
    )


class IUnitRegistry(Protocol):
    """Case-insensitive index of unit descriptors by id and name."""

    def register(self, raw: Any) -> Outcome:
        """Parse and index a raw definition."""
        ...

    def lookup(self, name_or_id: str) -> UnitDescriptor | None:
        """Find a descriptor by name or id (case-insensitive)."""
        ...

    def names(self) -> list[str]:
        """De-duplicated display names."""
        ...

    def unregister(self, name_or_id: str) -> bool:
        """Drop the index entries of a unit."""
        ...


class UnitRegistry:
    """In-memory unit registry."""

    def __init__(self):
        self._index: dict[str, UnitDescriptor] = {}

    def register(self, raw: Any) -> Outcome:
        """Parse and index a raw definition under its id and name."""
        try:
            descriptor = parse_definition(raw)
        except InvalidDefinition as e:
            logger.warning("Rejected unit definition: %s", e)
            return Outcome.failure(ErrorKind.INVALID_DEFINITION, str(e))

        self.add(descriptor)
        logger.info(
            "Registered %s (topic=%s, features=%d)",
            descriptor.name,
            descriptor.base_topic,
            len(descriptor.features),
            extra={"context": {"unit_id": descriptor.id}},
        )
        return Outcome.success(descriptor)

    def add(self, descriptor: UnitDescriptor) -> None:
        """Index an already-built descriptor, replacing prior entries."""
        self._index[descriptor.name.lower()] = descriptor
        self._index[descriptor.id.lower()] = descriptor

    def lookup(self, name_or_id: str) -> UnitDescriptor | None:
        """Find a descriptor by name or id (case-insensitive)."""
        return self._index.get((name_or_id or "").lower())

    def names(self) -> list[str]:
        """De-duplicated display names, in registration order."""
        return list(dict.fromkeys(d.name for d in self._index.values()))

    def descriptors(self) -> list[UnitDescriptor]:
        """De-duplicated descriptors."""
        return list({id(d): d for d in self._index.values()}.values())

    def unregister(self, name_or_id: str) -> bool:
        """Drop the name and id entries of a unit."""
        descriptor = self.lookup(name_or_id)
        if descriptor is None:
            return False
        for key in {name_or_id.lower(), descriptor.name.lower(), descriptor.id.lower()}:
            if self._index.get(key) is descriptor:
                del self._index[key]
        return True
