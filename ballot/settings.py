import dataclasses
import os
from dataclasses import dataclass
from typing import Optional

BALLOT_STRICT_CHECKSUM = os.environ.get("BALLOT_STRICT_CHECKSUM", "0") == "1"
BALLOT_REQUIRE_REGISTERED_DELEGATE = (
    os.environ.get("BALLOT_REQUIRE_REGISTERED_DELEGATE", "0") == "1"
)

BALLOT_TRACEBACK_LIMIT: Optional[int]

_tb_limit_str = os.environ.get("BALLOT_TRACEBACK_LIMIT")
if _tb_limit_str is not None:
    BALLOT_TRACEBACK_LIMIT = int(_tb_limit_str)
else:
    BALLOT_TRACEBACK_LIMIT = None


# camelCase keys accepted in the `settings` object of JSON input
_JSON_KEYS = {
    "strictChecksum": "strict_checksum",
    "requireRegisteredDelegate": "require_registered_delegate",
}


@dataclass
class Settings:
    # reject mixed-case addresses that are not valid EIP-55 checksums
    strict_checksum: bool = BALLOT_STRICT_CHECKSUM
    # reject delegations whose terminal delegate holds no weight
    require_registered_delegate: bool = BALLOT_REQUIRE_REGISTERED_DELEGATE

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        ret = cls()
        for key, value in data.items():
            if key not in _JSON_KEYS:
                raise ValueError(f"unknown setting: {key}")
            if not isinstance(value, bool):
                raise ValueError(f"setting {key} must be a boolean, got {value!r}")
            setattr(ret, _JSON_KEYS[key], value)
        return ret

    def as_dict(self) -> dict:
        return dataclasses.asdict(self)
