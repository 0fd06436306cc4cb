from typing import Protocol, runtime_checkable

@runtime_checkable
class RecordStore(Protocol):
    """Rewrites patient references per record category; every call returns the rows affected."""
    async def update_admission(self, new_code: int, old_code: int) -> int: ...
    async def update_examination(self, new_code: int, old_code: int) -> int: ...
    async def update_laboratory(self, new_code: int, name: str, age: int, sex: str, old_code: int) -> int: ...
    async def update_outpatient(self, new_code: int, age: int, sex: str, old_code: int) -> int: ...
    async def update_billing(self, new_code: int, name: str, old_code: int) -> int: ...
    async def update_medical_stock(self, new_code: int, old_code: int) -> int: ...
    async def update_therapy(self, new_code: int, old_code: int) -> int: ...
    async def update_visit(self, new_code: int, old_code: int) -> int: ...
    async def update_vaccine(self, new_code: int, old_code: int) -> int: ...
    async def mark_deleted(self, code: int) -> int: ...
