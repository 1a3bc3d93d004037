class RecipeBookError(Exception):
    """Base for errors the web layer knows how to present."""

    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class RecipeNotFound(RecipeBookError):
    status_code = 404

    def __init__(self, message: str = "Recipe not found") -> None:
        super().__init__(message)


class NotAuthenticated(RecipeBookError):
    status_code = 401

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class Forbidden(RecipeBookError):
    status_code = 403

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class BadRequest(RecipeBookError):
    """The request body could not be read."""

    status_code = 400


class InvalidRecipe(RecipeBookError):
    status_code = 400


class AnalysisError(RecipeBookError):
    """The model could not be asked, or its answer could not be used."""


class InvalidAnalysisInput(AnalysisError):
    status_code = 400


class AnalysisParseError(AnalysisError):
    status_code = 500


class MissingFieldsError(AnalysisError):
    status_code = 422

    def __init__(self, fields: list[str]) -> None:
        super().__init__(f"Missing required fields: {', '.join(fields)}")
        self.fields = fields


class LLMNotConfigured(AnalysisError):
    status_code = 500

    def __init__(self, message: str = "OpenAI API key is not configured") -> None:
        super().__init__(message)


class LLMUnavailable(AnalysisError):
    """The model api refused or failed the request."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code
