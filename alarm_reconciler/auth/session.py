"""boto3 session creation with optional STS assume-role."""

import boto3
from botocore.exceptions import ClientError, NoCredentialsError, BotoCoreError
from typing import Dict, Optional, Any
import logging
from datetime import datetime, timedelta, timezone

from alarm_reconciler.core.exceptions import AuthenticationError


logger = logging.getLogger(__name__)


class SessionFactory:
    """Builds boto3 sessions, assuming a configured IAM role when one is set."""
    
    def __init__(self, role_arn: Optional[str] = None, session_name: str = 'alarm-reconciler'):
        """Initialize the session factory.
        
        Args:
            role_arn: Optional IAM role to assume. If None, the ambient
                      credential chain is used as-is.
            session_name: STS role session name.
        """
        self.role_arn = role_arn
        self.session_name = session_name
        self._cached_credentials: Optional[Dict[str, Any]] = None
        self._credentials_expiry: Optional[datetime] = None
    
    def get_session(self, region: str) -> boto3.Session:
        """Get a boto3 session for a region.
        
        Raises:
            AuthenticationError: If role assumption fails.
        """
        if not self.role_arn:
            return boto3.Session(region_name=region)
        
        credentials = self._get_credentials(region)
        return boto3.Session(
            aws_access_key_id=credentials['AccessKeyId'],
            aws_secret_access_key=credentials['SecretAccessKey'],
            aws_session_token=credentials['SessionToken'],
            region_name=region
        )
    
    def _get_credentials(self, region: str) -> Dict[str, Any]:
        """Assume the configured role, reusing credentials until 5 minutes before expiry.
        
        Raises:
            AuthenticationError: If role assumption fails.
        """
        if self._cached_credentials and self._credentials_expiry:
            if datetime.now(timezone.utc) < (self._credentials_expiry - timedelta(minutes=5)):
                logger.debug("Using cached AWS credentials")
                return self._cached_credentials
        
        try:
            logger.info(f"Assuming IAM role: {self.role_arn}")
            sts_client = boto3.client('sts', region_name=region)
            response = sts_client.assume_role(
                RoleArn=self.role_arn,
                RoleSessionName=self.session_name,
                DurationSeconds=3600
            )
            
            credentials = response['Credentials']
            expiry = credentials['Expiration']
            if expiry.tzinfo is None:
                expiry = expiry.replace(tzinfo=timezone.utc)
            
            self._cached_credentials = credentials
            self._credentials_expiry = expiry
            
            logger.info("Successfully assumed IAM role")
            return credentials
            
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            error_message = e.response.get('Error', {}).get('Message', str(e))
            
            if error_code == 'AccessDenied':
                raise AuthenticationError(
                    f"Access denied when assuming role {self.role_arn}. "
                    "Check that the role exists and that its trust policy allows your credentials."
                )
            raise AuthenticationError(
                f"Failed to assume IAM role {self.role_arn}: {error_code} - {error_message}"
            )
                
        except NoCredentialsError:
            raise AuthenticationError(
                "No AWS credentials found. Configure credentials with `aws configure`, "
                "the AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY environment variables, "
                "or an instance profile."
            )
            
        except BotoCoreError as e:
            raise AuthenticationError(f"AWS configuration error: {e}")
    
    def clear_cached_credentials(self) -> None:
        """Clear any cached credentials to force fresh authentication."""
        self._cached_credentials = None
        self._credentials_expiry = None
        logger.debug("Cleared cached AWS credentials")


def create_cloudformation_template(alarm_suffix: str = '-cloudwatch-alarm') -> str:
    """Generate a CloudFormation template for an IAM role the reconciler can assume.
    
    Args:
        alarm_suffix: Naming suffix; alarm write permissions are scoped to it.
    
    Returns:
        CloudFormation template as a YAML string.
    """
    return f"""AWSTemplateFormatVersion: '2010-09-09'
Description: 'IAM role for the alarm reconciler with minimal required permissions'

Parameters:
  TrustedAccountId:
    Type: String
    Description: 'AWS Account ID that can assume this role'
  NotificationTopicArn:
    Type: String
    Description: 'SNS topic used for alarm actions and run notifications'

Resources:
  AlarmReconcilerRole:
    Type: AWS::IAM::Role
    Properties:
      RoleName: AlarmReconcilerRole
      AssumeRolePolicyDocument:
        Version: '2012-10-17'
        Statement:
          - Effect: Allow
            Principal:
              AWS: !Sub 'arn:aws:iam::${{TrustedAccountId}}:root'
            Action: sts:AssumeRole
      Policies:
        - PolicyName: AlarmReconcilerDiscovery
          PolicyDocument:
            Version: '2012-10-17'
            Statement:
              - Effect: Allow
                Action:
                  - sqs:ListQueues
                  - lambda:ListFunctions
                  - dynamodb:ListTables
                  - cloudwatch:DescribeAlarms
                Resource: '*'
              - Effect: Allow
                Action:
                  - cloudwatch:PutMetricAlarm
                  - cloudwatch:DeleteAlarms
                Resource: !Sub 'arn:aws:cloudwatch:*:${{AWS::AccountId}}:alarm:*{alarm_suffix}'
              - Effect: Allow
                Action:
                  - sns:Publish
                Resource: !Ref NotificationTopicArn

Outputs:
  RoleArn:
    Description: 'ARN of the created IAM role'
    Value: !GetAtt AlarmReconcilerRole.Arn
"""
