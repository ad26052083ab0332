import collections
import datetime
from typing import Dict, Iterator, List, Optional


Metric = collections.namedtuple("Metric", ["cnt", "duration"])
"""
One entry in `Metrics` object.
:param cnt: Number of occurences.
:param duration: Sum of seconds logged for this metric.
"""


class Metrics:
    """
    Object to track data quality metrics of one ingestion pass, like "rows kept" or "rows skipped: end before start".
    Each metric has name, counter of occurrences and total duration. Duration is optional and 0 by default.
    """

    def __init__(self, metrics: Optional[Dict[str, Metric]] = None):
        self.metrics: Dict[str, Metric] = dict(metrics) if metrics else {}

    def incr(self, metric_name: str, duration: float = 0.0) -> Metric:
        """
        Increment metric on one occurrence with given duration. Adds new metrics on the fly.
        :param metric_name: Name of metric to increment.
        :param duration: Duration in seconds to add. May be 0.
        :return: Updated metric.
        """
        metric = self.metrics.get(metric_name, Metric(0, 0.0))
        metric = Metric(metric.cnt + 1, metric.duration + duration)
        self.metrics[metric_name] = metric
        return metric

    def get_metric(self, metric_name: str) -> Optional[Metric]:
        """
        Returns one metric by name.
        :param metric_name: Name of metric to return.
        :return: The metric if extists, else None.
        """
        return self.metrics.get(metric_name)

    def count(self, metric_name: str) -> int:
        metric = self.metrics.get(metric_name)
        return metric.cnt if metric else 0

    def count_with_prefix(self, prefix: str) -> int:
        return sum(v.cnt for k, v in self.metrics.items() if k.startswith(prefix))

    def to_strings(self, is_exclude_duration=False, ignore_with_substrings: List[str] = None) -> Iterator[str]:
        """
        Returns generator of sorted (first by duration, next by count) metric descriptions.
        :param is_exclude_duration: Flag to don't print duration at all (useful for cases when we now that all
            metrics inside doesn't provide duration).
        :param ignore_with_substrings: List of substrings to don't return metrics with.
        :return: Ready to use generator of metrics converted to strings and sorted by duration.
        """
        sorted_metric_entries = sorted(self.metrics.items(), key=lambda x: (x[1].duration, x[1].cnt), reverse=True)
        for name, metric in sorted_metric_entries:
            if ignore_with_substrings and any(map(name.__contains__, ignore_with_substrings)):
                continue
            if is_exclude_duration:
                yield f"{metric.cnt:4} - {name}"
            else:
                yield f"{metric.cnt:4} on {str(datetime.timedelta(seconds=int(metric.duration))).rjust(8, '0')} - {name}"

    def __eq__(self, __o: object) -> bool:
        return isinstance(__o, Metrics) and self.metrics == __o.metrics

    def __repr__(self) -> str:
        return "\n  " + "\n  ".join(self.to_strings())
