"""
Domain exception hierarchy raised by the job application lifecycle.

Routers never catch these; `config.py` maps each class to an HTTP status.
"""


class DomainException(Exception):
    """Base exception for all domain errors"""
    pass


class ResourceNotFoundException(DomainException):
    """Requested resource not found"""

    def __init__(self, resource_type: str, identifier):
        self.resource_type = resource_type
        self.identifier = identifier
        super().__init__(f"{resource_type} not found: {identifier}")


class ApplicationNotFoundException(ResourceNotFoundException):

    def __init__(self, identifier):
        super().__init__("Job application", identifier)


class JobNotFoundException(ResourceNotFoundException):

    def __init__(self, identifier):
        super().__init__("Job posting", identifier)


class AuthorizationException(DomainException):
    """User not authorized for this operation"""
    pass


class DuplicateApplicationException(DomainException):
    """An application already exists for the (applicant, job) pair"""

    def __init__(self, applicant_id, job_id):
        self.applicant_id = applicant_id
        self.job_id = job_id
        super().__init__(f"User {applicant_id} has already applied for job {job_id}")


class JobClosedException(DomainException):
    """Job is inactive or past its application deadline"""

    def __init__(self, job_id):
        self.job_id = job_id
        super().__init__(f"Job {job_id} is no longer accepting applications")


class InvalidTransitionException(DomainException):
    """Requested status is not reachable from the current one"""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move application from '{current.value}' to '{target.value}'")


class ValidationException(DomainException):
    """Data validation failed"""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class ConflictException(DomainException):
    """Concurrent modification detected; caller should retry from a fresh read"""
    pass


class DependencyFailureException(DomainException):
    """A collaborator (job directory, notification sink) failed"""

    def __init__(self, dependency: str, reason: str):
        self.dependency = dependency
        self.reason = reason
        super().__init__(f"{dependency} failed: {reason}")
