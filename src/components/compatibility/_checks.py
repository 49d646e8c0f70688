"""
Compatibility - specialized component checks.

Pure functions over characteristic values. Values come straight from
product data, so every parser tolerates units and free text.
"""

from __future__ import annotations

import re

from .models import CheckResult

_LEADING_NUMBER = re.compile(r"^\s*(-?\d+(?:[.,]\d+)?)")
_FORM_FACTOR_ORDER = ["EATX", "ATX", "MATX", "ITX"]
_AFFIRMATIVE = {"yes", "true", "supported"}


def leading_number(value: str | None) -> float | None:
    """Numeric prefix of a value: "650 W" -> 650.0."""
    if not value:
        return None
    match = _LEADING_NUMBER.match(value)
    if not match:
        return None
    return float(match.group(1).replace(",", "."))


def digits(value: str | None) -> int | None:
    """All digits of a value joined: "155 mm" -> 155."""
    if not value:
        return None
    only = re.sub(r"\D", "", value)
    return int(only) if only else None


def normalize_value(value: str, kind: str) -> str:
    if not value:
        return value
    result = value.strip()

    if kind == "pcie":
        result = re.sub(r"\s+", "", result.lower())
        result = re.sub(r"x(\d+)", r"\1x", result)
        result = re.sub(r"pci-e|pciexpress", "pcie", result)
        result = re.sub(r"\([^)]*\)", "", result)
    elif kind == "socket":
        result = re.sub(r"\s*\([^)]*\)", "", result).strip()
        if not result.startswith("LGA"):
            result = result.upper()
    elif kind == "memory":
        result = re.sub(r"\s+", "", result).replace("SDRAM", "").upper()
    elif kind == "power":
        result = result.lower().replace("-", " ").replace("pins", "pin")
        result = re.sub(r"\s+", " ", result).strip()
        result = re.sub(r"eps |pcie ", "", result)
    elif kind == "form_factor":
        result = result.upper().replace("STANDARD-", "").replace("MICRO-", "M")
        result = re.sub(r"[\s-]", "", result.replace("MINI-", ""))
    elif kind == "dimensions":
        match = re.search(r"\d+(?:\.\d+)?", result)
        result = match.group(0) if match else result
    return result


# --- Power connectors ---


def _count(pattern: str, text: str, present: bool) -> int:
    match = re.search(pattern, text)
    if match:
        return int(match.group(1))
    return 1 if present else 0


def check_power_connectors(psu_connectors: str, required_connectors: str) -> CheckResult:
    """Can the PSU feed the component? A 6+2 pin serves as 8-pin or 6-pin."""
    psu = normalize_value(psu_connectors or "", "power")
    req = normalize_value(required_connectors or "", "power")
    if psu == req:
        return CheckResult(True)

    def is_16pin(text: str) -> bool:
        return "12vhpwr" in text or "16 pin" in text

    if is_16pin(psu) and is_16pin(req):
        return CheckResult(True)

    psu_6plus2 = _count(r"(\d+)\s*x\s*6\+2 pin", psu, "6+2 pin" in psu)
    psu_8 = 0
    psu_6 = 0
    if "6+2" not in psu:
        psu_8 = _count(r"(\d+)\s*x\s*8 pin", psu, "8 pin" in psu)
        psu_6 = _count(r"(\d+)\s*x\s*6 pin", psu, "6 pin" in psu)

    req_8 = _count(r"(\d+)\s*x\s*8 pin", req, "8 pin" in req)
    req_6 = _count(r"(\d+)\s*x\s*6 pin", req, "6 pin" in req)

    if is_16pin(req) and not is_16pin(psu):
        return CheckResult(False, "The power supply has no 12VHPWR/16-pin connector")

    available_8 = psu_8 + psu_6plus2
    if req_8 > available_8:
        return CheckResult(
            False, f"Not enough 8-pin power connectors: need {req_8}, have {available_8}"
        )

    remaining_6plus2 = psu_6plus2 - max(0, req_8 - psu_8)
    available_6 = psu_6 + remaining_6plus2
    if req_6 > available_6:
        return CheckResult(
            False, f"Not enough 6-pin power connectors: need {req_6}, have {available_6}"
        )
    return CheckResult(True)


# --- PCIe ---


def check_pcie(motherboard_pcie: str, gpu_pcie: str) -> CheckResult:
    mb = normalize_value(motherboard_pcie or "", "pcie")
    gpu = normalize_value(gpu_pcie or "", "pcie")
    if mb == gpu:
        return CheckResult(True)

    mb_version = re.search(r"pcie(\d+(?:\.\d)?)", mb)
    gpu_version = re.search(r"pcie(\d+(?:\.\d)?)", gpu)
    if mb_version and gpu_version:
        mb_v = float(mb_version.group(1))
        gpu_v = float(gpu_version.group(1))
        if mb_v >= gpu_v:
            return CheckResult(True)
        return CheckResult(
            False, f"Motherboard with PCIe {mb_v} does not support a PCIe {gpu_v} card"
        )
    # Undeterminable; slots are physically compatible
    return CheckResult(True)


# --- Form factor ---


def _form_factor_rank(token: str) -> int | None:
    if token in _FORM_FACTOR_ORDER:
        return _FORM_FACTOR_ORDER.index(token)
    for i, ff in enumerate(_FORM_FACTOR_ORDER):
        if token.endswith(ff):
            return i
    return None


def check_form_factor(case_form_factor: str, motherboard_form_factor: str) -> CheckResult:
    """Case fits its listed form factors, or any board no larger than it."""
    case = normalize_value(case_form_factor or "", "form_factor")
    mb = normalize_value(motherboard_form_factor or "", "form_factor")
    if case == mb:
        return CheckResult(True)

    case_tokens = [t for t in case.split(",") if t]
    if mb in case_tokens:
        return CheckResult(True)

    mb_rank = _form_factor_rank(mb)
    case_ranks = [r for r in (_form_factor_rank(t) for t in case_tokens) if r is not None]
    if mb_rank is not None and case_ranks:
        if min(case_ranks) <= mb_rank:
            return CheckResult(True)
        return CheckResult(
            False,
            f"Case ({case_form_factor}) does not fit a {motherboard_form_factor} motherboard",
        )
    return CheckResult(
        False,
        f"Motherboard form factor {motherboard_form_factor} is not compatible "
        f"with case {case_form_factor}",
    )


# --- Storage ---


def check_storage(
    storage_type: str,
    storage_interface: str,
    motherboard_nvme_support: str,
    motherboard_m2_slots: str,
    motherboard_sata_ports: str,
) -> CheckResult:
    kind = (storage_type or "").strip().lower()
    interface = (storage_interface or "").strip().lower()
    nvme = (motherboard_nvme_support or "").strip().lower()

    if "m.2" in kind:
        if not digits(motherboard_m2_slots):
            return CheckResult(False, "The motherboard has no M.2 slots for this drive")
        if "nvme" in interface and nvme not in _AFFIRMATIVE:
            return CheckResult(False, "The motherboard does not support NVMe drives")
        return CheckResult(True)

    if "ssd" in kind or "hdd" in kind or "sata" in interface:
        if not digits(motherboard_sata_ports):
            return CheckResult(False, "The motherboard has no SATA ports for this drive")
        return CheckResult(True)

    return CheckResult(True)


# --- Cooling ---


def check_cooling(
    cooler_type: str,
    cooler_socket: str,
    cooler_tdp_rating: str,
    cooler_size: str,
    cpu_socket: str,
    cpu_tdp: str,
    case_max_cooler_height: str,
    case_radiator_support: str,
) -> CheckResult:
    """
    Check a cooler against a CPU and, when given, a case.

    cooler_type is "air" or "liquid". cooler_size is the cooler height
    for air coolers and the radiator size for liquid ones.
    """
    cpu = (cpu_socket or "").strip()
    if cooler_socket and cpu:
        supported = [s.strip() for s in cooler_socket.split(",")]
        if not any(
            cpu == s or "universal" in s.lower() or cpu in s for s in supported
        ):
            return CheckResult(False, f"The cooler does not support socket {cpu_socket}")

    rating = digits(cooler_tdp_rating)
    tdp = digits(cpu_tdp)
    if rating is not None and tdp is not None and rating < tdp:
        return CheckResult(
            False,
            f"Cooler rated for {cooler_tdp_rating} is not enough for a {cpu_tdp} CPU",
        )

    if cooler_type == "liquid":
        radiator = digits(cooler_size)
        if radiator is not None and case_radiator_support:
            if str(radiator) not in case_radiator_support:
                return CheckResult(
                    False, f"The case does not support a {cooler_size} radiator"
                )
    else:
        height = digits(cooler_size)
        max_height = digits(case_max_cooler_height)
        if height is not None and max_height is not None and height > max_height:
            return CheckResult(
                False,
                f"Cooler height ({cooler_size}) exceeds the case limit "
                f"({case_max_cooler_height})",
            )
    return CheckResult(True)
