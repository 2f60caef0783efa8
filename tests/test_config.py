"""Tests for configuration management."""

import json

import pytest
from hypothesis import given, strategies as st

from alarm_reconciler.core.config import ConfigManager, ReconcilerConfig, values_from_env
from alarm_reconciler.core.exceptions import ConfigurationError
from alarm_reconciler.reconcile.policy import ResourceType


@st.composite
def valid_aws_region(draw):
    """Generate valid AWS region names."""
    region_prefix = draw(st.sampled_from(['us', 'eu', 'ap', 'ca', 'sa']))
    region_middle = draw(st.sampled_from(['east', 'west', 'north', 'south', 'central', 'southeast', 'northeast']))
    region_suffix = draw(st.integers(min_value=1, max_value=9))
    return f"{region_prefix}-{region_middle}-{region_suffix}"


class TestReconcilerConfig:
    
    def test_defaults(self):
        config = ReconcilerConfig()
        
        assert config.region == "us-east-1"
        assert config.alarm_suffix == "-cloudwatch-alarm"
        assert config.thresholds == {
            ResourceType.SQS: 5.0,
            ResourceType.LAMBDA: 10.0,
            ResourceType.DYNAMODB: 80.0,
        }
        assert config.resource_types == list(ResourceType)
        assert config.sns_topic_arn is None
        assert config.max_workers == 1
    
    @given(region=valid_aws_region())
    def test_valid_regions_accepted(self, region):
        assert ReconcilerConfig(region=region).region == region
    
    @pytest.mark.parametrize("region", ["useast1", "US-EAST-1", "us-east", ""])
    def test_invalid_regions_rejected(self, region):
        with pytest.raises(ValueError):
            ReconcilerConfig(region=region)
    
    @pytest.mark.parametrize("suffix", ["", "   ", "a|b"])
    def test_invalid_suffix_rejected(self, suffix):
        with pytest.raises(ValueError):
            ReconcilerConfig(alarm_suffix=suffix)
    
    def test_topic_arn_validation(self):
        arn = "arn:aws:sns:us-east-1:123456789012:Alarm-Topic"
        assert ReconcilerConfig(sns_topic_arn=arn).sns_topic_arn == arn
        with pytest.raises(ValueError):
            ReconcilerConfig(sns_topic_arn="not-an-arn")
    
    def test_non_positive_threshold_rejected(self):
        with pytest.raises(ValueError):
            ReconcilerConfig(sqs_threshold=0)
    
    def test_resource_types_from_string(self):
        config = ReconcilerConfig(resource_types="sqs, DynamoDB")
        assert config.resource_types == [ResourceType.SQS, ResourceType.DYNAMODB]
    
    def test_unknown_resource_type_rejected(self):
        with pytest.raises(ValueError):
            ReconcilerConfig(resource_types="SQS,RDS")


class TestEnvironment:
    
    def test_env_values(self):
        values = values_from_env({
            'AWS_REGION': 'eu-west-1',
            'ALARM_THRESHOLD_LAMBDA': '3',
            'SNS_TOPIC_ARN': 'arn:aws:sns:eu-west-1:123456789012:t',
            'UNRELATED': 'x',
        })
        
        assert values == {
            'region': 'eu-west-1',
            'lambda_threshold': '3',
            'sns_topic_arn': 'arn:aws:sns:eu-west-1:123456789012:t',
        }
    
    def test_legacy_threshold_variable(self):
        assert values_from_env({'ALARM_THRESHOLD': '7'}) == {'sqs_threshold': '7'}
    
    def test_specific_threshold_wins_over_legacy(self):
        values = values_from_env({'ALARM_THRESHOLD': '7', 'ALARM_THRESHOLD_SQS': '9'})
        assert values == {'sqs_threshold': '9'}


class TestConfigManager:
    
    def test_precedence(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"region": "eu-west-1", "sqs_threshold": 12}))
        manager = ConfigManager(config_file)
        
        config = manager.load_config(
            environ={'AWS_REGION': 'us-west-2', 'ALARM_THRESHOLD_LAMBDA': '4'},
            region="ap-southeast-2",
            max_workers=None,
        )
        
        assert config.region == "ap-southeast-2"
        assert config.sqs_threshold == 12
        assert config.lambda_threshold == 4
        assert config.max_workers == 1
    
    def test_without_file(self):
        manager = ConfigManager()
        
        assert not manager.config_exists()
        assert manager.load_config(environ={}).region == "us-east-1"
    
    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigManager(tmp_path / "missing.json").load_config(environ={})
    
    def test_corrupted_file(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text("{not json")
        
        with pytest.raises(ConfigurationError):
            ConfigManager(config_file).load_config(environ={})
    
    def test_invalid_value_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            ConfigManager().load_config(environ={'MAX_WORKERS': 'many'})
