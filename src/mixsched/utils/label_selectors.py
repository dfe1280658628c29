from typing import Mapping, Optional


def format_selector(selector: Optional[Mapping[str, str]]) -> str:
    """
    Renders an equality label set as a Kubernetes label selector string.

    >>> format_selector({"app": "web", "tier": "front"})
    'app=web,tier=front'
    """
    if not selector:
        return ""
    return ",".join(f"{key}={value}" for key, value in sorted(selector.items()))


def selector_matches(selector: Optional[Mapping[str, str]], labels: Optional[Mapping[str, str]]) -> bool:
    """Returns True if every key/value of the selector is present in labels. An empty selector matches all."""
    if not selector:
        return True
    labels = labels or {}
    return all(labels.get(key) == value for key, value in selector.items())
