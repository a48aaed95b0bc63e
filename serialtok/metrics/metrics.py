"""
serialtok exposes prometheus metrics for the byte source, the tokenizer and the runner, e.g.
:code:`serialtok_number_of_received_bytes_total` or :code:`serialtok_number_of_tokens_total`.
All samples carry the labels :code:`component`, :code:`name` and :code:`description`.

Configuration
=============

..  code-block:: yaml
    :linenos:

    metrics:
      enabled: true
      port: 8000

:code:`enabled` starts the prometheus http exporter on :code:`port`. Both are optional,
the exporter is disabled by default and listens on port :code:`8000`.

Metrics Overview
================

.. autoclass:: serialtok.source.async_byte_source.AsyncByteSource.Metrics
   :members:
   :undoc-members:

.. autoclass:: serialtok.tokenizer.tokenizer.Tokenizer.Metrics
   :members:
   :undoc-members:

.. autoclass:: serialtok.runner.Runner.Metrics
   :members:
   :undoc-members:
"""

import functools
from abc import ABC, abstractmethod
from typing import Union

from attrs import define, field, validators
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

# a poll drains at most a few hundred bytes, most take microseconds
POLL_TIME_BUCKETS = (0.000005, 0.00001, 0.00005, 0.0001, 0.0005, 0.001, 0.01, 0.1)


@define(kw_only=True, slots=False)
class Metric(ABC):
    """Attrs wrapper around a prometheus collector.

    The collector is created by :code:`init_tracker`. Components with the same metric name share
    one collector and are told apart by their label values.
    """

    name: str = field(validator=validators.instance_of(str))
    description: str = field(validator=validators.instance_of(str))
    labels: dict = field(
        validator=[
            validators.instance_of(dict),
            validators.deep_mapping(
                key_validator=validators.instance_of(str),
                value_validator=validators.instance_of(str),
            ),
        ],
        factory=dict,
    )
    _registry: CollectorRegistry = field(default=REGISTRY)
    _prefix: str = field(default="serialtok_")
    tracker: Union[Counter, Histogram, Gauge] = field(init=False, default=None)

    @property
    def fullname(self) -> str:
        """name including the :code:`serialtok_` prefix"""
        return f"{self._prefix}{self.name}"

    @property
    def sample(self):
        """the child collector for this metric's labels"""
        return self.tracker.labels(**self.labels)

    def _collector_options(self) -> dict:
        return {}

    def init_tracker(self) -> None:
        """Create the collector or reuse the one registered under the same name."""
        collector_type = METRIC_TO_COLLECTOR_TYPE[type(self)]
        try:
            self.tracker = collector_type(
                name=self.fullname,
                documentation=self.description,
                labelnames=tuple(self.labels),
                registry=self._registry,
                **self._collector_options(),
            )
        except ValueError as error:
            # pylint: disable=protected-access
            registered = self._registry._names_to_collectors.get(self.fullname)
            # pylint: enable=protected-access
            if not isinstance(registered, collector_type):
                raise ValueError(
                    f"Metric {self.fullname} already exists with different type"
                ) from error
            self.tracker = registered
        # exposes the sample with value 0 before the first update
        self.tracker.labels(**self.labels)

    @abstractmethod
    def __add__(self, other):
        """Record :code:`other` with this metric's labels"""

    @staticmethod
    def measure_time(metric_name: str = "processing_time_per_poll"):
        """Decorate a component method to observe its run time in the named histogram."""

        def decorator(func):
            @functools.wraps(func)
            def inner(self, *args, **kwargs):  # nosemgrep
                with getattr(self.metrics, metric_name).sample.time():
                    return func(self, *args, **kwargs)

            return inner

        return decorator


@define(kw_only=True)
class CounterMetric(Metric):
    """Monotonic counter, :code:`metric += n` increments it"""

    def __add__(self, other) -> "CounterMetric":
        self.sample.inc(other)
        return self


@define(kw_only=True)
class HistogramMetric(Metric):
    """Histogram with :code:`POLL_TIME_BUCKETS`, :code:`metric += value` observes a value"""

    def _collector_options(self) -> dict:
        return {"buckets": POLL_TIME_BUCKETS}

    def __add__(self, other) -> "HistogramMetric":
        self.sample.observe(other)
        return self


@define(kw_only=True)
class GaugeMetric(Metric):
    """Current value, :code:`metric += value` sets it"""

    def __add__(self, other) -> "GaugeMetric":
        self.sample.set(other)
        return self


METRIC_TO_COLLECTOR_TYPE = {
    CounterMetric: Counter,
    HistogramMetric: Histogram,
    GaugeMetric: Gauge,
}
