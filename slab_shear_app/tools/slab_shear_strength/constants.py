from __future__ import annotations

TOOL_ID = "slab_shear_strength"
TOOL_VERSION = "1.0.0"
DEFAULT_UNITS_SYSTEM = "SI (mm, MPa, N)"

# Concrete shear strength fcv (no shear reinforcement)
FCV_BASE_COEFF = 0.17
FCV_CAP_COEFF = 0.34

# Prestress contribution
PRESTRESS_COEFF = 0.3

# Shear reinforcement branch
REINF_SQRT_FC_COEFF = 0.5
REINF_CAP_COEFF = 0.2

# Field messages
PARSE_ERROR_MESSAGE = "Please enter a valid number"
VALUE_ERROR_MESSAGE = "Value must be greater than 0"
MISSING_MESSAGE = "This field is required"
UNKNOWN_FIELD_MESSAGE = "Unknown input field"
OVERFLOW_MESSAGE = "Result is too large to represent; check the input magnitudes"

# Text export
EXPORT_FILENAME = "shear-strength-calculations.txt"
EXPORT_DELIMITER = "-" * 40
RESULT_DECIMALS = 2
