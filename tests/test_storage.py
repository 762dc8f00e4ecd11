"""Tests for the entity store backends. No network: Google Sheets is mocked."""

import json
from unittest.mock import MagicMock

import pytest

from finance_ledger.services.storage import (
    CorruptDataError,
    GoogleSheetsEntityStore,
    InMemoryEntityStore,
    JsonFileEntityStore,
    StorageError,
)
from finance_ledger.services.storage.google_sheets import STORE_COLUMNS


class TestInMemoryEntityStore:
    """Tests for the dict-backed store."""

    @pytest.mark.asyncio
    async def test_missing_key_is_none(self):
        assert await InMemoryEntityStore().load("nothing") is None

    @pytest.mark.asyncio
    async def test_values_are_copied(self):
        store = InMemoryEntityStore()
        value = [{"id": "1"}]
        await store.save("k", value)
        value.append({"id": "2"})

        loaded = await store.load("k")
        loaded.append({"id": "3"})

        assert await store.load("k") == [{"id": "1"}]

    @pytest.mark.asyncio
    async def test_save_many_and_delete(self):
        store = InMemoryEntityStore({"a": 1})
        await store.save_many({"b": 2, "c": 3})
        await store.delete("a")
        await store.delete("never-there")

        assert store.dump() == {"b": 2, "c": 3}


class TestJsonFileEntityStore:
    """Tests for the single-document JSON store."""

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path):
        store = JsonFileEntityStore(tmp_path / "ledger.json")
        assert await store.load("finance_accounts_v1") is None

    @pytest.mark.asyncio
    async def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "ledger.json"
        store = JsonFileEntityStore(path)

        await store.save_many({"a": [1, 2], "b": "USD"})

        assert await store.load("a") == [1, 2]
        assert json.loads(path.read_text(encoding="utf-8")) == {"a": [1, 2], "b": "USD"}

    @pytest.mark.asyncio
    async def test_save_keeps_other_keys(self, tmp_path):
        store = JsonFileEntityStore(tmp_path / "ledger.json")
        await store.save("a", 1)
        await store.save("b", 2)
        await store.delete("a")

        assert await store.load("a") is None
        assert await store.load("b") == 2

    @pytest.mark.asyncio
    async def test_no_temp_files_left_behind(self, tmp_path):
        store = JsonFileEntityStore(tmp_path / "ledger.json")
        await store.save_many({"a": 1})
        assert [p.name for p in tmp_path.iterdir()] == ["ledger.json"]

    @pytest.mark.asyncio
    async def test_invalid_json_is_corrupt(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(CorruptDataError):
            await JsonFileEntityStore(path).load("a")

    @pytest.mark.asyncio
    async def test_non_object_document_is_corrupt(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(CorruptDataError):
            await JsonFileEntityStore(path).load("a")

    @pytest.mark.asyncio
    async def test_unserializable_value_leaves_file_untouched(self, tmp_path):
        path = tmp_path / "ledger.json"
        store = JsonFileEntityStore(path)
        await store.save("a", 1)

        with pytest.raises(StorageError):
            await store.save_many({"a": 2, "b": object()})

        assert await store.load("a") == 1
        assert await store.load("b") is None


def make_sheet(rows, row_count=100):
    sheet = MagicMock()
    sheet.get_all_values.return_value = rows
    sheet.row_count = row_count
    return sheet


def make_sheets_store(sheet):
    client = MagicMock()
    client.get_store_sheet.return_value = sheet
    return GoogleSheetsEntityStore(client)


class TestGoogleSheetsEntityStore:
    """Tests for the Google Sheets store with a mocked worksheet."""

    @pytest.mark.asyncio
    async def test_load_decodes_json_cell(self):
        sheet = make_sheet([
            STORE_COLUMNS,
            ["finance_currency_v1", '"EUR"', "2024-12-01T00:00:00+00:00"],
        ])
        store = make_sheets_store(sheet)

        assert await store.load("finance_currency_v1") == "EUR"
        assert await store.load("finance_accounts_v1") is None

    @pytest.mark.asyncio
    async def test_load_invalid_json_is_corrupt(self):
        sheet = make_sheet([STORE_COLUMNS, ["k", "{broken", ""]])

        with pytest.raises(CorruptDataError):
            await make_sheets_store(sheet).load("k")
        # not retried
        assert sheet.get_all_values.call_count == 1

    @pytest.mark.asyncio
    async def test_save_many_is_one_batch_update(self):
        sheet = make_sheet([
            STORE_COLUMNS,
            ["finance_accounts_v1", "[]", "2024-12-01T00:00:00+00:00"],
        ])
        store = make_sheets_store(sheet)

        await store.save_many({
            "finance_accounts_v1": [{"id": "1"}],
            "finance_transactions_v1": [],
        })

        sheet.batch_update.assert_called_once()
        data = sheet.batch_update.call_args.args[0]
        assert [item["range"] for item in data] == ["A2:C2", "A3:C3"]
        assert data[0]["values"][0][:2] == ["finance_accounts_v1", '[{"id": "1"}]']
        assert data[1]["values"][0][:2] == ["finance_transactions_v1", "[]"]
        assert sheet.batch_update.call_args.kwargs["value_input_option"] == "RAW"
        sheet.add_rows.assert_not_called()

    @pytest.mark.asyncio
    async def test_save_grows_full_sheet(self):
        sheet = make_sheet([STORE_COLUMNS], row_count=1)
        store = make_sheets_store(sheet)

        await store.save("k", 1)

        sheet.add_rows.assert_called_once_with(1)

    @pytest.mark.asyncio
    async def test_unserializable_value_is_storage_error(self):
        sheet = make_sheet([STORE_COLUMNS])

        with pytest.raises(StorageError):
            await make_sheets_store(sheet).save("k", object())
        sheet.batch_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_removes_row(self):
        sheet = make_sheet([STORE_COLUMNS, ["a", "1", ""], ["b", "2", ""]])

        await make_sheets_store(sheet).delete("b")

        sheet.delete_rows.assert_called_once_with(3)
