"""
Base class for AWS service collaborators.
"""
from abc import ABC, abstractmethod
import boto3

from ..core.exceptions import ServiceError


class BaseServiceManager(ABC):
    """Abstract base class for all AWS service collaborators."""
    
    def __init__(self, session: boto3.Session, region: str):
        """Initialize the service manager with AWS session and region.
        
        Args:
            session: Authenticated boto3 session
            region: AWS region to operate in
        """
        self.session = session
        self.region = region
        self._client = None
    
    @property
    def client(self):
        """Lazy-loaded AWS service client."""
        if self._client is None:
            self._client = self.session.client(self.service_name, region_name=self.region)
        return self._client
    
    @property
    @abstractmethod
    def service_name(self) -> str:
        """AWS service name (e.g., 'sqs', 'cloudwatch', 'sns')."""
        pass
    
    def _handle_aws_error(self, error: Exception, operation: str, resource_id: str = None) -> None:
        """Handle AWS API errors and convert to ServiceError.
        
        Args:
            error: The underlying AWS error
            operation: Operation that failed
            resource_id: ID of resource being operated on (if applicable)
            
        Raises:
            ServiceError: Wrapped error with context
        """
        resource_context = f" for resource {resource_id}" if resource_id else ""
        error_message = f"AWS {self.service_name} {operation} failed{resource_context}: {str(error)}"
        raise ServiceError(error_message, details=str(error)) from error
