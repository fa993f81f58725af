"""
OVAL Document Schemas

Typed view over the subset of an OVAL definitions document that the
updaters consume. Tests, objects and states are kept in per-kind lists
with id lookup maps, so cross references resolve in constant time.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class Criterion(BaseModel):
    test_ref: str
    comment: str = ""
    negate: bool = False


class Criteria(BaseModel):
    operator: str = "AND"
    negate: bool = False
    comment: str = ""
    criterions: List[Criterion] = Field(default_factory=list)
    criterias: List["Criteria"] = Field(default_factory=list)


class Reference(BaseModel):
    source: str = ""
    ref_id: str = ""
    ref_url: str = ""


class AdvisoryCve(BaseModel):
    cve_id: str = ""
    href: str = ""
    cvss3: str = ""
    impact: str = ""
    public: str = ""


class Advisory(BaseModel):
    severity: str = ""
    issued: str = ""
    updated: str = ""
    public_date: str = ""
    cves: List[AdvisoryCve] = Field(default_factory=list)
    bugs: List[str] = Field(default_factory=list)
    refs: List[str] = Field(default_factory=list)
    affected_cpes: List[str] = Field(default_factory=list)


class Affected(BaseModel):
    family: str = ""
    platforms: List[str] = Field(default_factory=list)
    products: List[str] = Field(default_factory=list)


class Definition(BaseModel):
    id: str
    class_: str = Field("", alias="class")
    title: str = ""
    description: str = ""
    affecteds: List[Affected] = Field(default_factory=list)
    references: List[Reference] = Field(default_factory=list)
    advisory: Advisory = Field(default_factory=Advisory)
    criteria: Criteria = Field(default_factory=Criteria)

    model_config = ConfigDict(populate_by_name=True)


class OvalTest(BaseModel):
    """Any ``*_test`` element; ``kind`` is its local tag name."""

    id: str
    kind: str
    comment: str = ""
    check: str = ""
    object_refs: List[str] = Field(default_factory=list)
    state_refs: List[str] = Field(default_factory=list)


class ObjectName(BaseModel):
    body: str = ""
    var_ref: str = ""


class OvalObject(BaseModel):
    """Any ``*_object`` element."""

    id: str
    kind: str
    name: Optional[ObjectName] = None


class StateField(BaseModel):
    body: str = ""
    operation: str = ""
    datatype: str = ""


class OvalState(BaseModel):
    """Any ``*_state`` element."""

    id: str
    kind: str
    evr: Optional[StateField] = None
    arch: Optional[StateField] = None
    version: Optional[StateField] = None
    signature_keyid: Optional[StateField] = None


class ConstantVariable(BaseModel):
    id: str
    comment: str = ""
    datatype: str = ""
    values: List[str] = Field(default_factory=list)


class Root(BaseModel):
    definitions: List[Definition] = Field(default_factory=list)
    tests: List[OvalTest] = Field(default_factory=list)
    objects: List[OvalObject] = Field(default_factory=list)
    states: List[OvalState] = Field(default_factory=list)
    variables: List[ConstantVariable] = Field(default_factory=list)

    _tests_by_id: Dict[str, int] = PrivateAttr(default_factory=dict)
    _objects_by_id: Dict[str, int] = PrivateAttr(default_factory=dict)
    _states_by_id: Dict[str, int] = PrivateAttr(default_factory=dict)
    _variables_by_id: Dict[str, int] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context) -> None:
        self.reindex()

    def reindex(self) -> None:
        """Rebuild the id lookup maps after the lists were modified."""
        self._tests_by_id = {t.id: i for i, t in enumerate(self.tests)}
        self._objects_by_id = {o.id: i for i, o in enumerate(self.objects)}
        self._states_by_id = {s.id: i for i, s in enumerate(self.states)}
        self._variables_by_id = {v.id: i for i, v in enumerate(self.variables)}

    def lookup_test(self, ref: str) -> Optional[OvalTest]:
        i = self._tests_by_id.get(ref)
        return self.tests[i] if i is not None else None

    def lookup_object(self, ref: str) -> Optional[OvalObject]:
        i = self._objects_by_id.get(ref)
        return self.objects[i] if i is not None else None

    def lookup_state(self, ref: str) -> Optional[OvalState]:
        i = self._states_by_id.get(ref)
        return self.states[i] if i is not None else None

    def lookup_variable(self, ref: str) -> Optional[ConstantVariable]:
        i = self._variables_by_id.get(ref)
        return self.variables[i] if i is not None else None
