class NotFoundError(LookupError):
    """Row missing or owned by another organization."""


class BusinessRuleError(ValueError):
    pass


class ConflictError(BusinessRuleError):
    pass


class InsufficientCreditsError(BusinessRuleError):
    pass
