"""Split captured page bundles into vendor, common and page-specific groups.

Promotion is decided for every module first and applied afterwards, so the
page bundles are never modified while they are being inspected. Candidates are
visited in first-seen order across the input bundles, which keeps a dependency
ahead of the modules that were captured after it.
"""

import re
from typing import Dict, List, Optional, Set

from ..constants import COMMON_BUNDLE, RESERVED_BUNDLES, VENDOR_BUNDLE
from ..models import BundleDefinition, ClassifierConfig

# Requested early by every page; a 404 here breaks the loader itself
CRITICAL_EXACT_MODULES = frozenset(
    [
        "jquery",
        "Magento_PageCache/js/form-key-provider",
        "Magento_Theme/js/responsive",
        "Magento_Theme/js/theme",
        "Magento_Translation/js/mage-translation-dictionary",
        "Magento_Ui/js/core/app",
        "Magento_Ui/js/modal/modal",
    ]
)

CRITICAL_PATTERN_MODULES = tuple(
    re.compile(pattern)
    for pattern in (
        r"^mage/(?!calendar|gallery)",
        r"^requirejs/",
        r"^text$",
        r"^domReady$",
        r"^jquery/jquery(\.min)?$",
        r"^jquery/jquery-migrate",
        r"^jquery/jquery-storageapi",
        r"^underscore$",
        r"^knockoutjs/knockout$",
    )
)

# Vendor_Module/... is business logic, anything else is a library
MAGENTO_MODULE_REGEX = re.compile(r"^[A-Z][a-zA-Z0-9]+_[A-Z][a-zA-Z0-9]+/")
STATIC_RESOURCE_REGEX = re.compile(r"\.(html|json)$", re.IGNORECASE)

_PLUGIN_PREFIX = re.compile(r"^[^!]+!")


def clean_module_name(module_id: str) -> str:
    """Strip the loader plugin prefix and the ``.js`` extension."""
    name = _PLUGIN_PREFIX.sub("", module_id, count=1)
    return name[:-3] if name.endswith(".js") else name


def is_critical_infrastructure(clean_name: str) -> bool:
    if clean_name in CRITICAL_EXACT_MODULES:
        return True
    return any(pattern.search(clean_name) for pattern in CRITICAL_PATTERN_MODULES)


def target_bundle_type(clean_name: str) -> str:
    """Choose ``vendor`` or ``common`` for a promoted module."""
    if STATIC_RESOURCE_REGEX.search(clean_name):
        return COMMON_BUNDLE
    if is_critical_infrastructure(clean_name):
        return VENDOR_BUNDLE
    if MAGENTO_MODULE_REGEX.match(clean_name):
        return COMMON_BUNDLE
    return VENDOR_BUNDLE


def _promotion_target(
    module_id: str, users: Set[str], pinned: Optional[str], config: ClassifierConfig
) -> Optional[str]:
    clean_name = clean_module_name(module_id)

    if is_critical_infrastructure(clean_name):
        return VENDOR_BUNDLE
    if pinned:
        return pinned

    # Checkout-only code must not end up in bundles served to every visitor
    transactional_only = users <= set(config.transactional_bundles)
    is_shared = len(users) >= config.usage_threshold and not transactional_only
    is_configured = clean_name in config.always_common

    if is_shared or is_configured:
        return target_bundle_type(clean_name)
    return None


def classify_bundles(
    bundles: List[BundleDefinition], config: Optional[ClassifierConfig] = None
) -> List[BundleDefinition]:
    """Return ``[vendor, common, *page bundles]`` with every module in exactly one bundle.

    Input bundles are left untouched. Modules of input bundles already named
    ``vendor`` or ``common`` stay in that group, so classifying an already
    classified set changes nothing.
    """
    config = config or ClassifierConfig()

    # Phase 1: global analysis
    users: Dict[str, Set[str]] = {}
    authoritative: Dict[str, str] = {}
    owner: Dict[str, str] = {}
    pinned: Dict[str, str] = {}
    for bundle in bundles:
        for module_id, module_path in bundle.modules.items():
            users.setdefault(module_id, set()).add(bundle.name)
            authoritative.setdefault(module_id, module_path)
            owner.setdefault(module_id, bundle.name)
            if bundle.name in RESERVED_BUNDLES:
                pinned.setdefault(module_id, bundle.name)

    # Phase 2: decide, in discovery order
    decisions: Dict[str, str] = {}
    for module_id in authoritative:
        target = _promotion_target(module_id, users[module_id], pinned.get(module_id), config)
        if target:
            decisions[module_id] = target

    # Phase 3: apply. A module shared below the threshold stays with the first page declaring it.
    vendor = {mid: authoritative[mid] for mid, target in decisions.items() if target == VENDOR_BUNDLE}
    common = {mid: authoritative[mid] for mid, target in decisions.items() if target == COMMON_BUNDLE}
    pages = [
        BundleDefinition(
            name=bundle.name,
            modules={
                mid: path
                for mid, path in bundle.modules.items()
                if mid not in decisions and owner[mid] == bundle.name
            },
        )
        for bundle in bundles
        if bundle.name not in RESERVED_BUNDLES
    ]

    return [
        BundleDefinition(name=VENDOR_BUNDLE, modules=vendor),
        BundleDefinition(name=COMMON_BUNDLE, modules=common),
        *pages,
    ]
