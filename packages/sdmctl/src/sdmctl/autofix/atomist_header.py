from __future__ import annotations

from ..sdm.push_tests import PushTest, all_satisfied, has_file_containing
from ..sdm.registrations import AutofixRegistration
from ..support.push_tests import IS_TYPESCRIPT
from .header import AddHeaderParameters, add_header_transform

LICENSE_FILENAME = "LICENSE"


def add_atomist_header(name: str, glob: str, push_test: PushTest) -> AutofixRegistration:
    return AutofixRegistration(
        name=name,
        push_test=all_satisfied(push_test, has_file_containing(LICENSE_FILENAME, r"Apache License")),
        transform=add_header_transform,
        parameters=AddHeaderParameters(glob=glob, exclude_glob="**/*.d.ts"),
    )


ADD_ATOMIST_TYPESCRIPT_HEADER = add_atomist_header("TypeScript header", "**/*.ts", IS_TYPESCRIPT)
