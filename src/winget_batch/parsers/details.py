"""Parser for ``winget show`` output.

The dump is a list of ``Label: value`` lines. Recognised labels are mapped
onto PackageDetail fields through a fixed dispatch table; everything else
(the ``Found ... [id]`` banner, installer sections, unknown labels) is
ignored.
"""

import re
from collections.abc import Iterable
from typing import Any, Optional, Union
from urllib.parse import urlsplit

from winget_batch.models import PackageDetail

# Label as printed by winget -> PackageDetail field
LABEL_FIELDS = {
    "Version": "version",
    "Publisher": "publisher",
    "Publisher Url": "publisher_url",
    "Author": "author",
    "Homepage": "homepage",
    "Description": "description",
    "Category": "category",
    "Tags": "tags",
    "License": "license",
    "License Url": "license_url",
    "Copyright": "copyright",
    "Copyright Url": "copyright_url",
    "Privacy Url": "privacy_url",
    "Package Url": "package_url",
    "Release Notes": "release_notes",
    "Release Notes Url": "release_notes_url",
    "Installer Type": "installer_type",
    "Pricing": "pricing",
    "Store License": "store_license",
    "Free Trial": "free_trial",
    "Age Rating": "age_rating",
    "Moniker": "moniker",
}

SOURCE_HOST_DOMAINS = (
    "github.com",
    "gitlab.com",
    "bitbucket.org",
    "codeberg.org",
    "sourceforge.net",
)

TAG_SEPARATOR = re.compile(r",\s*")


def source_host_link(url: Optional[str]) -> Optional[str]:
    """Return ``url`` when its host is a known source-hosting site or a
    subdomain of one."""
    if not url:
        return None
    candidate = url.strip()
    if "://" not in candidate:
        candidate = "//" + candidate
    try:
        host = (urlsplit(candidate).hostname or "").lower()
    except ValueError:
        return None
    for domain in SOURCE_HOST_DOMAINS:
        if host == domain or host.endswith("." + domain):
            return url
    return None


def _iter_lines(block: Union[str, Iterable[Any]]) -> Iterable[str]:
    if isinstance(block, str):
        block = [block]
    for element in block:
        if isinstance(element, BaseException):
            continue
        yield from str(element).splitlines()


def split_tags(value: str) -> tuple[str, ...]:
    return tuple(tag for tag in TAG_SEPARATOR.split(value.strip()) if tag)


def parse_details(
    block: Union[str, Iterable[Any]], package_id: str
) -> PackageDetail:
    """Parse a ``winget show`` dump into a PackageDetail.

    Args:
        block: The dump as one string or a sequence of lines. Exception
            objects in the sequence (captured error records) are skipped;
            other non-string elements are stringified.
        package_id: Id to store on the result; never read from the dump.

    Returns:
        The parsed detail. Labels with blank values stay unset, so an
        unrecognisable dump yields a detail carrying only the id.
    """
    values: dict[str, Any] = {}
    for line in _iter_lines(block):
        label, sep, value = line.partition(":")
        if not sep:
            continue

        field_name = LABEL_FIELDS.get(label.strip())
        value = value.strip()
        if field_name is None or not value or field_name in values:
            continue

        if field_name == "tags":
            tags = split_tags(value)
            if tags:
                values["tags"] = tags
        else:
            values[field_name] = value

    link = source_host_link(values.get("publisher_url"))
    if link:
        values["publisher_source_host_link"] = link

    return PackageDetail(id=package_id, **values)
