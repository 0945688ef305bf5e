from __future__ import annotations

from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field

NUMERIC_FIELDS: Tuple[str, ...] = ("u", "dom", "fc", "sigmacp", "betah")

# Form labels
FIELD_LABELS: Dict[str, str] = {
    "u": "Critical shear perimeter (u)",
    "dom": "Mean effective depth (dom)",
    "fc": "Concrete strength (f'c)",
    "sigmacp": "Effective prestress (σcp)",
    "betah": "Ratio (βh)",
    "has_shear_reinforcement": "Has shear reinforcement",
}

# Labels used in the text export
EXPORT_LABELS: Dict[str, str] = {
    "u": "Critical shear perimeter (u)",
    "dom": "Mean effective depth (dom)",
    "fc": "Concrete strength (fc)",
    "sigmacp": "Effective prestress (σcp)",
    "betah": "Ratio βh",
}

FIELD_UNITS: Dict[str, str] = {
    "u": "mm",
    "dom": "mm",
    "fc": "MPa",
    "sigmacp": "MPa",
    "betah": "-",
    "has_shear_reinforcement": "-",
}

TOOLTIPS: Dict[str, str] = {
    "u": "Critical shear perimeter (u): The length of the line geometrically similar to the boundary of the effective area. Must be positive.",
    "dom": "Mean effective depth (dom): Average value around the critical shear perimeter. Typically ranges from 100-1000mm.",
    "fc": "Concrete strength (f'c): Characteristic compressive strength of concrete. Usually between 20-100 MPa.",
    "sigmacp": "Effective prestress (σcp): Average intensity of effective prestress in concrete. Typically 0-10 MPa.",
    "betah": "Ratio (βh): Ratio of longest to shortest dimension of the effective loaded area. Must be greater than 1.",
}


class InputSet(BaseModel):
    """
    Validated inputs for the punching-shear calculation.

    Units follow the caller's convention; with mm and MPa the result is in N.
    All five numeric fields must be strictly positive and finite. βh > 1 is
    expected but only reported as a warning.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    u: float = Field(..., gt=0, allow_inf_nan=False, description="Critical shear perimeter u", json_schema_extra={"units": "mm"})
    dom: float = Field(..., gt=0, allow_inf_nan=False, description="Mean effective depth dom", json_schema_extra={"units": "mm"})
    fc: float = Field(..., gt=0, allow_inf_nan=False, description="Characteristic concrete strength f'c", json_schema_extra={"units": "MPa"})
    sigmacp: float = Field(..., gt=0, allow_inf_nan=False, description="Average effective prestress σcp", json_schema_extra={"units": "MPa"})
    betah: float = Field(..., gt=0, allow_inf_nan=False, description="Aspect ratio of the loaded area βh", json_schema_extra={"units": ""})
    has_shear_reinforcement: bool = Field(False, description="Slab has shear reinforcement")


class BatchInputs(BaseModel):
    """Headless batch request: the calculation inputs plus run options."""
    model_config = ConfigDict(extra="forbid")

    u: float = Field(1000.0, description="Critical shear perimeter u", json_schema_extra={"units": "mm"})
    dom: float = Field(150.0, description="Mean effective depth dom", json_schema_extra={"units": "mm"})
    fc: float = Field(32.0, description="Characteristic concrete strength f'c", json_schema_extra={"units": "MPa"})
    sigmacp: float = Field(1.5, description="Average effective prestress σcp", json_schema_extra={"units": "MPa"})
    betah: float = Field(1.5, description="Aspect ratio of the loaded area βh", json_schema_extra={"units": ""})
    has_shear_reinforcement: bool = Field(False, description="Slab has shear reinforcement")

    project_name: str = Field("SlabShear", description="Label written into the calc package")

    def calc_inputs(self) -> Dict[str, object]:
        return self.model_dump(include=set(NUMERIC_FIELDS) | {"has_shear_reinforcement"})
