from abc import ABC, abstractmethod
from datetime import timedelta
from enum import Enum
from typing import Any, ClassVar, Iterator, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict


class TraceKind(str, Enum):
    """Network characteristic a trace describes."""
    BW = "bw"
    DELAY = "delay"
    DELAY_PER_PACKET = "delay_per_packet"
    LOSS = "loss"
    DUPLICATE = "duplicate"


class Segment(NamedTuple):
    """A value held for ``duration``.

    ``value`` is bits per second for bandwidth traces, a ``timedelta`` for
    delay traces and a list of probabilities for loss and duplicate traces.
    """
    value: Any
    duration: timedelta


class TraceConfig(BaseModel, ABC):
    """Immutable description of one trace model.

    A config is built once (usually by decoding a config file) and can build
    any number of independent models. Models never write back into it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    tag: ClassVar[str] = ""
    kind: ClassVar[TraceKind]

    @abstractmethod
    def build(self) -> "BaseTrace":
        pass

    def forever(self) -> "TraceConfig":
        """Repeat this config without end.

        The result rebuilds a fresh model from this config every time the
        previous one runs out, so random models restart from their seed.
        """
        from .registry import ConfigRegistry

        repeated_class = ConfigRegistry.get_repeated_config(self.kind)
        return repeated_class(pattern=[self], count=0)


class BaseTrace(ABC):
    def __init__(self, config: TraceConfig):
        self.config = config
        self._exhausted = False

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @property
    def tag(self) -> str:
        return self.config.tag

    @property
    def kind(self) -> TraceKind:
        return self.config.kind

    def clone_config(self) -> TraceConfig:
        return self.config.model_copy()

    def advance(self) -> Optional[Any]:
        """Return the next segment, or None once the trace has ended.

        Exhaustion is sticky: after the first None every call returns None.
        """
        if self._exhausted:
            return None
        item = self._next()
        if item is None:
            self._exhausted = True
        return item

    @abstractmethod
    def _next(self) -> Optional[Any]:
        pass

    def take(self, count: int) -> List[Any]:
        items = []
        for _ in range(count):
            item = self.advance()
            if item is None:
                break
            items.append(item)
        return items

    def __iter__(self) -> Iterator[Any]:
        while True:
            item = self.advance()
            if item is None:
                return
            yield item


class StaticSegment(BaseTrace):
    """Emits one ``(value, duration)`` segment and ends."""

    def __init__(self, config: TraceConfig, value: Any, duration: timedelta):
        super().__init__(config)
        self.value = value
        self.duration = duration
        self._emitted = False

    def _next(self) -> Optional[Segment]:
        if self._emitted:
            return None
        self._emitted = True
        return Segment(self.value, self.duration)
