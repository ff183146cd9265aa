class StepwiseError(Exception):
    "Base exception for errors raised by stepwise."
    pass

class StepContractError(StepwiseError):
    "A rule reported a change without a change type or a resulting node."
    pass

class ExpressionParseError(StepwiseError, ValueError):
    "An expression could not be parsed from text."
    pass

class RuleSyntaxError(StepwiseError, ValueError):
    "A pattern rule definition is malformed."
    pass
