"""Base class of everything that is built from a configuration: transports, the byte source
and the tokenizer."""

import functools
import inspect
import logging
from abc import ABC
from functools import cached_property

from attrs import define, field, fields, validators

from serialtok.metrics.metrics import Metric
from serialtok.util.helper import camel_to_snake

logger = logging.getLogger("Component")


class Component(ABC):
    """A named part of serialtok with a frozen configuration and prometheus metrics"""

    @define(kw_only=True, slots=False, frozen=True)
    class Config:
        """Options every component shares. Subclasses add their own fields."""

        type: str = field(validator=validators.instance_of(str))
        """Registry key of the component, e.g. :code:`serial`"""

    @define(kw_only=True)
    class Metrics:
        """Container of the component's metrics. Every :code:`Metric` field gets the
        component labels and its prometheus collector on creation."""

        _labels: dict

        def __attrs_post_init__(self):
            for metric_field in fields(type(self)):
                metric = getattr(self, metric_field.name)
                if isinstance(metric, Metric):
                    metric.labels = self._labels
                    metric.init_tracker()

    # __dict__ is needed by functools.cached_property
    __slots__ = ["name", "_config", "__dict__"]

    name: str
    _config: Config

    def __init__(self, name: str, configuration: "Component.Config"):
        self.name = name
        self._config = configuration

    @property
    def metric_labels(self) -> dict:
        """Labels that identify this component in every metric sample"""
        return {"component": self._config.type, "name": self.name, "description": ""}

    @cached_property
    def metrics(self):
        """The component's metrics, created on first access"""
        return self.Metrics(labels=self.metric_labels)

    def __repr__(self):
        return camel_to_snake(self.__class__.__name__)

    def describe(self) -> str:
        """Class name and configured name, e.g. :code:`SerialTransport (uart0)`.
        Used as prefix in log messages and errors."""
        return f"{self.__class__.__name__} ({self.name})"

    def _populate_cached_properties(self):
        for name, value in inspect.getmembers(type(self)):
            if isinstance(value, functools.cached_property):
                getattr(self, name)

    def shut_down(self):
        """Release everything the component holds. Does nothing by default."""
        logger.debug("Shut down %s", self.describe())

    def health(self) -> bool:
        """Return :code:`True` if the component can do its work"""
        logger.debug("Checking health of %s", self.describe())
        return True
