"""Configuration management for the alarm reconciler."""

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from alarm_reconciler.core.exceptions import ConfigurationError
from alarm_reconciler.reconcile.policy import DEFAULT_THRESHOLDS, ResourceType


# Environment variable -> config field
ENV_VARS = {
    'AWS_REGION': 'region',
    'ALARM_SUFFIX': 'alarm_suffix',
    'ALARM_THRESHOLD': 'sqs_threshold',
    'ALARM_THRESHOLD_SQS': 'sqs_threshold',
    'ALARM_THRESHOLD_LAMBDA': 'lambda_threshold',
    'ALARM_THRESHOLD_DYNAMODB': 'dynamodb_threshold',
    'SNS_TOPIC_ARN': 'sns_topic_arn',
    'ALARM_PERIOD': 'alarm_period',
    'EVALUATION_PERIODS': 'evaluation_periods',
    'RESOURCE_TYPES': 'resource_types',
    'PLAN_FILE': 'plan_path',
    'MAX_WORKERS': 'max_workers',
    'ROLE_ARN': 'role_arn',
}


class ReconcilerConfig(BaseModel):
    """Settings shared by the analyze and apply stages."""
    
    region: str = Field(default="us-east-1", description="AWS region to reconcile")
    alarm_suffix: str = Field(default="-cloudwatch-alarm", description="Alarm naming suffix")
    sqs_threshold: float = Field(default=DEFAULT_THRESHOLDS[ResourceType.SQS], gt=0)
    lambda_threshold: float = Field(default=DEFAULT_THRESHOLDS[ResourceType.LAMBDA], gt=0)
    dynamodb_threshold: float = Field(default=DEFAULT_THRESHOLDS[ResourceType.DYNAMODB], gt=0)
    sns_topic_arn: Optional[str] = Field(default=None, description="Topic for alarm actions and run notifications")
    alarm_period: int = Field(default=60, ge=10, description="Metric period in seconds")
    evaluation_periods: int = Field(default=1, ge=1)
    resource_types: List[ResourceType] = Field(default_factory=lambda: list(ResourceType))
    plan_path: str = Field(default="plan.txt", description="Plan file written by analyze, read by apply")
    max_workers: int = Field(default=1, ge=1, le=32, description="Concurrent alarm API calls")
    role_arn: Optional[str] = Field(default=None, description="IAM role to assume before any AWS call")
    
    @field_validator('region')
    @classmethod
    def validate_region(cls, v: str) -> str:
        """Validate AWS region format."""
        region_pattern = r'^[a-z]{2,3}(-gov)?-[a-z]+-\d+$'
        if not re.match(region_pattern, v):
            raise ValueError(
                f"Invalid AWS region format: {v}. "
                "Expected format: us-east-1, eu-west-1, ap-southeast-3, etc."
            )
        return v
    
    @field_validator('alarm_suffix')
    @classmethod
    def validate_alarm_suffix(cls, v: str) -> str:
        """An empty suffix would make every alarm in the account an orphan candidate."""
        if not v or not v.strip():
            raise ValueError("Alarm suffix must not be empty")
        if '|' in v or '\n' in v:
            raise ValueError(f"Alarm suffix must not contain '|' or newlines: {v!r}")
        return v
    
    @field_validator('sns_topic_arn')
    @classmethod
    def validate_sns_topic_arn(cls, v: Optional[str]) -> Optional[str]:
        """Validate SNS topic ARN format."""
        if not v:
            return None
        arn_pattern = r'^arn:aws[a-z-]*:sns:[a-z0-9-]+:\d{12}:[A-Za-z0-9_-]{1,256}(\.fifo)?$'
        if not re.match(arn_pattern, v):
            raise ValueError(
                f"Invalid SNS topic ARN format: {v}. "
                "Expected format: arn:aws:sns:us-east-1:123456789012:TopicName"
            )
        return v
    
    @field_validator('role_arn')
    @classmethod
    def validate_role_arn(cls, v: Optional[str]) -> Optional[str]:
        """Validate IAM role ARN format."""
        if not v:
            return None
        arn_pattern = r'^arn:aws[a-z-]*:iam::\d{12}:role/[a-zA-Z0-9+=,.@_/-]+$'
        if not re.match(arn_pattern, v):
            raise ValueError(
                f"Invalid IAM role ARN format: {v}. "
                "Expected format: arn:aws:iam::123456789012:role/RoleName"
            )
        return v
    
    @field_validator('resource_types', mode='before')
    @classmethod
    def parse_resource_types(cls, v: Any) -> Any:
        """Accept a comma separated string of wire labels."""
        if isinstance(v, str):
            v = [label for label in v.split(',') if label.strip()]
        if isinstance(v, (list, tuple)):
            parsed = []
            for label in v:
                if isinstance(label, ResourceType):
                    parsed.append(label)
                    continue
                resource_type = ResourceType.from_label(str(label))
                if resource_type is None:
                    raise ValueError(f"Unsupported resource type: {label}")
                parsed.append(resource_type)
            if not parsed:
                raise ValueError("At least one resource type must be enabled")
            return parsed
        return v
    
    @property
    def thresholds(self) -> Dict[ResourceType, float]:
        """Default alarm threshold per resource type."""
        return {
            ResourceType.SQS: self.sqs_threshold,
            ResourceType.LAMBDA: self.lambda_threshold,
            ResourceType.DYNAMODB: self.dynamodb_threshold,
        }


def values_from_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Collect config values from environment variables.

    ``ALARM_THRESHOLD_SQS`` wins over the older ``ALARM_THRESHOLD``.
    """
    if environ is None:
        environ = os.environ
    
    values = {}
    for env_var, field_name in ENV_VARS.items():
        value = environ.get(env_var)
        if value is None or value == "":
            continue
        if env_var == 'ALARM_THRESHOLD' and environ.get('ALARM_THRESHOLD_SQS'):
            continue
        values[field_name] = value
    return values


class ConfigManager:
    """Resolves configuration from defaults, environment, an optional JSON file and overrides."""
    
    def __init__(self, config_file: Optional[Path] = None):
        """Initialize configuration manager.
        
        Args:
            config_file: Optional JSON file with config field names as keys.
        """
        self.config_file = Path(config_file) if config_file else None
    
    def config_exists(self) -> bool:
        """Check if the configuration file exists.
        
        Returns:
            True if a configuration file was given and exists, False otherwise.
        """
        return self.config_file is not None and self.config_file.exists()
    
    def load_file(self) -> Dict[str, Any]:
        """Load raw values from the configuration file.
        
        Returns:
            Mapping of field names to values, empty if no file was given.
            
        Raises:
            ConfigurationError: If the file is missing, unreadable or not a JSON object.
        """
        if self.config_file is None:
            return {}
        
        if not self.config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {self.config_file}")
        
        try:
            with open(self.config_file, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Invalid configuration file {self.config_file}: {e}", details=str(e))
        
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {self.config_file} must contain a JSON object")
        
        return data
    
    def load_config(
        self,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> ReconcilerConfig:
        """Build the effective configuration.
        
        Precedence, highest first: overrides, config file, environment, defaults.
        Overrides whose value is None are ignored.
        
        Raises:
            ConfigurationError: If any value fails validation.
        """
        values: Dict[str, Any] = {}
        values.update(values_from_env(environ))
        values.update(self.load_file())
        values.update({k: v for k, v in overrides.items() if v is not None})
        
        try:
            return ReconcilerConfig(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}", details=str(e))
