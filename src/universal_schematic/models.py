from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class SyntaxNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str
    start: int
    end: int
    field: str | None = None
    named: bool = True
    children: list["SyntaxNode"] = Field(default_factory=list)

    def child(self, field: str) -> "SyntaxNode | None":
        for node in self.children:
            if node.field == field:
                return node
        return None

    def named_children(self) -> list["SyntaxNode"]:
        return [node for node in self.children if node.named and node.kind != "comment"]


SyntaxNode.model_rebuild()  # necessary for recursive types


class EditSpan(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int
    end: int
    replacement: str

    @model_validator(mode="after")
    def _check_range(self) -> "EditSpan":
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid edit span [{self.start}, {self.end})")
        return self


class TargetReference(BaseModel):
    name: str
    prefix: str = "this."

    def qualified(self, token: str) -> str:
        return f"{self.prefix}{token}"


class Capability(BaseModel):
    type_label: str
    provider_module: str
    provider_token: str


class InjectionResult(BaseModel):
    path: str
    name: str
    matched: bool
    edits: int = 0

    @property
    def changed(self) -> bool:
        return self.edits > 0


class UniversalOptions(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    directory: str = "."
    project: str | None = None
    skip_install: bool = False
    disable_diagnostics: bool = False


class EntryModule(BaseModel):
    module_name: str
    file_path: str


class BootstrapComponent(BaseModel):
    component: str
    file_path: str
    app_id: str


class FollowUpTask(BaseModel):
    kind: Literal["node-package-install", "external-schematic"]
    directory: str
    package: str | None = None
    schematic: str | None = None
    options: dict[str, Any] = Field(default_factory=dict)
