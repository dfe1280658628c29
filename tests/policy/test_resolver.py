# tests/policy/test_resolver.py
"""
Tests for PolicyResolver: per-field precedence of instance, namespace and
default values, and rejection of invalid weights.
"""

import itertools

import pytest

from mixsched.core.exceptions import PolicyResolutionError
from mixsched.models.policy import WebhookSettings
from mixsched.policy.resolver import (
    ENABLE_LABEL_KEY,
    ON_DEMAND_WEIGHT_LABEL_KEY,
    SPOT_WEIGHT_LABEL_KEY,
    PolicyResolver,
)


@pytest.fixture
def resolver(settings):
    return PolicyResolver(settings)


class TestDefaults:
    def test_no_labels_uses_defaults(self, resolver):
        """Nothing set anywhere resolves to the process defaults."""
        policy = resolver.resolve("default", {}, {})
        assert policy.enabled is True
        assert policy.spot_weight == 10
        assert policy.on_demand_weight == 1

    def test_none_label_sets_are_accepted(self, resolver):
        policy = resolver.resolve("default", None, None)
        assert policy.spot_weight == 10

    def test_disabled_default(self):
        resolver = PolicyResolver(WebhookSettings(enabled=False))
        assert resolver.resolve("default", {}, {}).enabled is False


class TestWeightPrecedence:
    def test_instance_on_demand_weight_only(self, resolver):
        """Instance on-demand weight, no namespace label."""
        policy = resolver.resolve("default", {ON_DEMAND_WEIGHT_LABEL_KEY: "5"}, {})
        assert policy.on_demand_weight == 5
        assert policy.spot_weight == 10

    def test_fields_resolve_independently(self, resolver):
        """Instance sets spot only; the on-demand weight still comes from the namespace."""
        policy = resolver.resolve(
            "default",
            {SPOT_WEIGHT_LABEL_KEY: "7"},
            {SPOT_WEIGHT_LABEL_KEY: "3", ON_DEMAND_WEIGHT_LABEL_KEY: "4"},
        )
        assert policy.spot_weight == 7
        assert policy.on_demand_weight == 4

    @pytest.mark.parametrize(
        "instance, namespace, expected",
        [
            (None, None, 10),
            (None, "3", 3),
            ("7", None, 7),
            ("7", "3", 7),
            ("0", "3", 0),
        ],
    )
    def test_spot_weight_levels(self, resolver, instance, namespace, expected):
        instance_labels = {} if instance is None else {SPOT_WEIGHT_LABEL_KEY: instance}
        namespace_labels = {} if namespace is None else {SPOT_WEIGHT_LABEL_KEY: namespace}
        assert resolver.resolve("default", instance_labels, namespace_labels).spot_weight == expected

    def test_all_label_combinations_respect_precedence(self, resolver):
        """Every combination of levels for every field picks the most specific one present."""
        keys = [ENABLE_LABEL_KEY, SPOT_WEIGHT_LABEL_KEY, ON_DEMAND_WEIGHT_LABEL_KEY]
        instance_values = {ENABLE_LABEL_KEY: "false", SPOT_WEIGHT_LABEL_KEY: "20", ON_DEMAND_WEIGHT_LABEL_KEY: "21"}
        namespace_values = {ENABLE_LABEL_KEY: "true", SPOT_WEIGHT_LABEL_KEY: "30", ON_DEMAND_WEIGHT_LABEL_KEY: "31"}
        defaults = {ENABLE_LABEL_KEY: True, SPOT_WEIGHT_LABEL_KEY: 10, ON_DEMAND_WEIGHT_LABEL_KEY: 1}

        for on_instance in itertools.product([False, True], repeat=3):
            for on_namespace in itertools.product([False, True], repeat=3):
                instance = {k: instance_values[k] for k, present in zip(keys, on_instance) if present}
                namespace = {k: namespace_values[k] for k, present in zip(keys, on_namespace) if present}
                policy = resolver.resolve("default", instance, namespace)

                resolved = {
                    ENABLE_LABEL_KEY: policy.enabled,
                    SPOT_WEIGHT_LABEL_KEY: policy.spot_weight,
                    ON_DEMAND_WEIGHT_LABEL_KEY: policy.on_demand_weight,
                }
                for key in keys:
                    if key in instance:
                        expected = instance[key]
                    elif key in namespace:
                        expected = namespace[key]
                    else:
                        expected = defaults[key]
                    if key == ENABLE_LABEL_KEY and isinstance(expected, str):
                        expected = expected == "true"
                    elif not policy.enabled:
                        # Weight labels are not consulted once the switch is off.
                        expected = defaults[key]
                    elif isinstance(expected, str):
                        expected = int(expected)
                    assert resolved[key] == expected, (instance, namespace, key)


class TestInvalidWeights:
    @pytest.mark.parametrize("value", ["-1", "abc", "1.5", "", " 3", "1_0"])
    def test_invalid_instance_weight_rejected(self, resolver, value):
        with pytest.raises(PolicyResolutionError):
            resolver.resolve("default", {SPOT_WEIGHT_LABEL_KEY: value}, {})

    @pytest.mark.parametrize("value", ["-5", "ten"])
    def test_invalid_namespace_weight_rejected(self, resolver, value):
        with pytest.raises(PolicyResolutionError):
            resolver.resolve("default", {}, {ON_DEMAND_WEIGHT_LABEL_KEY: value})

    def test_negative_weight_is_not_clamped(self, resolver):
        with pytest.raises(PolicyResolutionError, match="must be >= 0"):
            resolver.resolve("default", {ON_DEMAND_WEIGHT_LABEL_KEY: "-1"}, {})

    def test_weight_above_api_maximum_rejected(self, resolver):
        with pytest.raises(PolicyResolutionError, match="must be <= 100"):
            resolver.resolve("default", {SPOT_WEIGHT_LABEL_KEY: "101"}, {})

    def test_valid_instance_weight_shadows_invalid_namespace_weight(self, resolver):
        policy = resolver.resolve("default", {SPOT_WEIGHT_LABEL_KEY: "2"}, {SPOT_WEIGHT_LABEL_KEY: "bad"})
        assert policy.spot_weight == 2


class TestSwitch:
    def test_instance_false_overrides_namespace_true(self, resolver):
        policy = resolver.resolve("default", {ENABLE_LABEL_KEY: "false"}, {ENABLE_LABEL_KEY: "true"})
        assert policy.enabled is False

    def test_instance_true_overrides_disabled_default(self):
        resolver = PolicyResolver(WebhookSettings(enabled=False))
        assert resolver.resolve("default", {ENABLE_LABEL_KEY: "true"}, {}).enabled is True

    def test_namespace_false_applies_when_instance_unset(self, resolver):
        assert resolver.resolve("default", {}, {ENABLE_LABEL_KEY: "false"}).enabled is False

    def test_empty_instance_value_falls_through(self, resolver):
        assert resolver.resolve("default", {ENABLE_LABEL_KEY: ""}, {ENABLE_LABEL_KEY: "false"}).enabled is False

    @pytest.mark.parametrize("value", ["True", "yes", "1", "flase"])
    def test_non_canonical_value_counts_as_unset(self, resolver, value, caplog):
        policy = resolver.resolve("default", {ENABLE_LABEL_KEY: value}, {ENABLE_LABEL_KEY: "false"})
        assert policy.enabled is False
        assert "expected 'true' or 'false'" in caplog.text

    def test_non_canonical_value_does_not_enable(self):
        resolver = PolicyResolver(WebhookSettings(enabled=False))
        assert resolver.resolve("default", {ENABLE_LABEL_KEY: "yes"}, {}).enabled is False

    def test_excluded_namespace_never_enabled(self, resolver):
        policy = resolver.resolve("kube-system", {ENABLE_LABEL_KEY: "true"}, {ENABLE_LABEL_KEY: "true"})
        assert policy.enabled is False
        assert resolver.is_excluded("kube-system")
        assert resolver.is_excluded("mix-scheduler-system")
        assert not resolver.is_excluded("default")

    def test_is_enabled_ignores_invalid_weights(self, resolver):
        assert resolver.is_enabled("default", {SPOT_WEIGHT_LABEL_KEY: "bad"}) is True


class TestDisabledSkipsWeights:
    def test_instance_opt_out_ignores_malformed_weight(self, resolver):
        policy = resolver.resolve("default", {ENABLE_LABEL_KEY: "false", SPOT_WEIGHT_LABEL_KEY: "high"}, {})
        assert policy.enabled is False
        assert policy.spot_weight == 10

    def test_namespace_opt_out_ignores_malformed_namespace_weight(self, resolver):
        policy = resolver.resolve("default", {}, {ENABLE_LABEL_KEY: "false", ON_DEMAND_WEIGHT_LABEL_KEY: "-3"})
        assert policy.enabled is False
        assert policy.on_demand_weight == 1

    def test_disabled_default_ignores_malformed_weight(self):
        resolver = PolicyResolver(WebhookSettings(enabled=False))
        policy = resolver.resolve("default", {SPOT_WEIGHT_LABEL_KEY: "high"}, {})
        assert policy.enabled is False

    def test_excluded_namespace_ignores_malformed_weight(self, resolver):
        assert resolver.resolve("kube-system", {SPOT_WEIGHT_LABEL_KEY: "high"}, {}).enabled is False

    def test_enabled_instance_still_rejects_malformed_weight(self, resolver):
        with pytest.raises(PolicyResolutionError):
            resolver.resolve("default", {ENABLE_LABEL_KEY: "true", SPOT_WEIGHT_LABEL_KEY: "high"}, {})
