import logging
from typing import Any, List, Optional, Tuple

from pydantic import Field, FieldSerializationInfo, field_serializer, field_validator

from .serde import decode, encode
from .trace import BaseTrace, TraceConfig
from .units import is_humanized

logger = logging.getLogger(__name__)


class RepeatedPatternConfig(TraceConfig):
    """
    Plays ``pattern`` in order, ``count`` times (0 repeats forever).

    Each child is built from its config when its turn comes, so every pass
    starts from the children's initial state. An empty pattern produces
    nothing whatever the count.
    """

    pattern: Tuple[TraceConfig, ...] = ()
    count: int = Field(default=0, ge=0)

    @field_validator("pattern", mode="before")
    @classmethod
    def decode_children(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            return value
        return [decode(item, kind=cls.kind) if isinstance(item, dict) else item for item in value]

    @field_validator("pattern")
    @classmethod
    def check_children_kind(cls, value: Tuple[TraceConfig, ...]) -> Tuple[TraceConfig, ...]:
        for index, child in enumerate(value):
            if child.kind != cls.kind:
                raise ValueError(
                    f"pattern[{index}] is a {child.kind.value} trace ({child.tag}), "
                    f"{cls.__name__} only accepts {cls.kind.value} traces"
                )
        return value

    @field_serializer("pattern")
    def encode_children(self, pattern: Tuple[TraceConfig, ...], info: FieldSerializationInfo) -> List[Any]:
        humanized = is_humanized(info)
        return [encode(child, humanized=humanized) for child in pattern]

    def build(self) -> "RepeatedPattern":
        return RepeatedPattern(self)

    def forever(self) -> "RepeatedPatternConfig":
        return self.model_copy(update={"count": 0})


class RepeatedPattern(BaseTrace):
    def __init__(self, config: RepeatedPatternConfig):
        super().__init__(config)
        self.pattern = config.pattern
        self.count = config.count
        self.current_model: Optional[BaseTrace] = None
        self.current_cycle = 0
        self.current_index = 0
        self._produced_this_cycle = False

    def _next(self) -> Optional[Any]:
        while self.pattern and (self.count == 0 or self.current_cycle < self.count):
            if self.current_model is None:
                self.current_model = self.pattern[self.current_index].build()

            item = self.current_model.advance()
            if item is not None:
                self._produced_this_cycle = True
                return item

            self.current_model = None
            self.current_index += 1
            if self.current_index >= len(self.pattern):
                self.current_index = 0
                self.current_cycle += 1
                if not self._produced_this_cycle:
                    # Children are rebuilt identically each pass, so an empty
                    # pass means every later pass is empty too
                    logger.debug("%s: pass %d produced nothing, stopping", self.tag, self.current_cycle)
                    return None
                self._produced_this_cycle = False
                if self.count == 0 or self.current_cycle < self.count:
                    logger.debug("%s: starting pass %d", self.tag, self.current_cycle + 1)
        return None
