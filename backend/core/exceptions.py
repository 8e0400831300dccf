class WorkflowError(Exception):
    """Raised when a status transition or lifecycle operation is not allowed"""
    pass
