from __future__ import annotations


class MailformError(Exception):
    """Base class for errors raised by the builder core."""


class MalformedSchemaError(MailformError):
    """The imported form-description is not valid JSON (or not a JSON object)."""


class MissingArtifactError(MailformError):
    def __init__(self, artifact: str) -> None:
        self.artifact = artifact
        super().__init__(f"{artifact} not found. Please provide both schema.json and template.html.")


class EmptyFormSchemaError(MailformError):
    """Export attempted with no derivable dynamic fields."""


class TemplateSyntaxError(MailformError):
    """Unbalanced or unknown block markers in a template."""


class BlockNotFoundError(MailformError, KeyError):
    def __init__(self, block_id: str) -> None:
        self.block_id = block_id
        super().__init__(block_id)

    def __str__(self) -> str:
        return f"Unknown block id: {self.block_id}"
