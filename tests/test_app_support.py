import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

import auth
import errors
from config import AppConfig
from context import build_context
from datatable import ColumnDescriptor, Field
from i18n import Translator
from table_view import ENGINES_KEY, drop_table_engines, get_table_engine, render_data_table


class TestAuth(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.ctx = build_context(AppConfig(db_file=Path(self.tmp.name) / "gym.db"), hash_rounds=4)

    def tearDown(self):
        self.tmp.cleanup()

    def test_hash_round_trip(self):
        hashed = auth.hash_password("s3cret", rounds=4)
        self.assertTrue(auth.verify_password("s3cret", hashed))
        self.assertFalse(auth.verify_password("other", hashed))

    def test_long_passwords_are_truncated_not_rejected(self):
        hashed = auth.hash_password("x" * 100, rounds=4)
        self.assertTrue(auth.verify_password("x" * 72, hashed))

    def test_default_admin_and_forced_change(self):
        db = self.ctx.db
        self.assertTrue(auth.login(db, "admin", auth.DEFAULT_ADMIN_PASSWORD))
        self.assertFalse(auth.login(db, "admin", "wrong"))
        self.assertFalse(auth.login(db, "nobody", "admin123"))
        self.assertTrue(db.is_force_password_change())

        auth.change_password(db, "admin", "newpass1")
        self.assertFalse(db.is_force_password_change())
        self.assertTrue(auth.login(db, "admin", "newpass1"))

    def test_validate_new_password(self):
        self.assertEqual(auth.validate_new_password("abcdef", "abcdef"), [])
        self.assertEqual(len(auth.validate_new_password("abc", "abd")), 2)

    def test_second_init_keeps_admin(self):
        again = build_context(self.ctx.config, hash_rounds=4)
        rows = again.db.fetch_all("SELECT id FROM admin_users")
        self.assertEqual(len(rows), 1)


class TestConfigAndTranslator(unittest.TestCase):
    def test_from_env(self):
        config = AppConfig.from_env({
            "GYM_DB_FILE": "/tmp/other.db",
            "GYM_LANGUAGE": "ES",
            "GYM_FEATURE_CLASSES": "0",
            "GYM_LOG_LEVEL": "debug",
        })
        self.assertEqual(config.db_file, Path("/tmp/other.db"))
        self.assertEqual(config.language, "es")
        self.assertEqual(config.log_level, "DEBUG")
        self.assertFalse(config.is_feature_enabled("classes"))
        self.assertTrue(config.is_feature_enabled("trainers"))
        self.assertFalse(config.is_feature_enabled("unknown"))
        self.assertTrue(config.is_feature_enabled("announcements"))

    def test_unsupported_language_falls_back(self):
        self.assertEqual(AppConfig.from_env({"GYM_LANGUAGE": "fr"}).language, "en")

    def test_translator(self):
        tr = Translator("en")
        self.assertEqual(tr.t("search"), "Search")
        self.assertEqual(tr.t("no.such.key"), "no.such.key")
        self.assertEqual(tr.t("showing", start=1, end=10, total=23), "Showing 1 to 10 of 23 results")

        tr.set_language("es")
        self.assertEqual(tr.t("search"), "Buscar")
        self.assertEqual(tr.status_label("active"), "Activo")
        self.assertEqual(tr.status_label("weird"), "weird")
        self.assertEqual(tr.status_label("checked-in"), "Registrado")
        self.assertEqual(tr.status_label("no-show"), "No asistió")

        tr.set_language("xx")
        self.assertEqual(tr.language, "es")

    def test_contexts_do_not_share_language(self):
        with tempfile.TemporaryDirectory() as tmp:
            a = build_context(AppConfig(db_file=Path(tmp) / "a.db"), hash_rounds=4)
            b = build_context(AppConfig(db_file=Path(tmp) / "b.db"), hash_rounds=4)
            a.translator.set_language("es")
            self.assertEqual(b.t("search"), "Search")


class TestErrors(unittest.TestCase):
    def test_module_header(self):
        self.assertEqual(errors.__doc__.strip().splitlines()[0], "errors.py")

    def test_validation_error_messages(self):
        self.assertEqual(errors.ValidationError("Name is required.").messages, ["Name is required."])
        err = errors.ValidationError(["a", "b"])
        self.assertEqual((err.messages, str(err)), (["a", "b"], "a; b"))
        self.assertIsInstance(err, errors.GymAdminError)


class TestTableView(unittest.TestCase):
    def test_one_engine_per_view(self):
        state = {}
        members = get_table_engine(state, "members", search_key="first_name")
        self.assertIs(get_table_engine(state, "members", search_key="first_name"), members)
        self.assertIsNot(get_table_engine(state, "classes", search_key="name"), members)
        self.assertEqual(members.search_key, Field("first_name"))

        drop_table_engines(state, keep="classes")
        self.assertEqual(list(state[ENGINES_KEY]), ["classes"])

    def test_render_with_pages(self):
        st = MagicMock()
        st.text_input.return_value = "member"
        st.columns.return_value = (MagicMock(), MagicMock(), MagicMock())
        engine = get_table_engine({}, "members")
        rows = [{"name": f"Member {i}"} for i in range(23)]

        visible = render_data_table(st, engine, rows, [ColumnDescriptor("Name", "name")],
                                    key="members", t=Translator().t)

        self.assertEqual(len(visible), 10)
        self.assertEqual(engine.query, "member")
        st.dataframe.assert_called_once()
        st.columns.assert_called_once()

    def test_render_no_results(self):
        st = MagicMock()
        st.text_input.return_value = "zzz"
        engine = get_table_engine({}, "members")

        visible = render_data_table(st, engine, [{"name": "Ana"}], [ColumnDescriptor("Name", "name")],
                                    key="members", t=Translator().t)

        self.assertEqual(visible, [])
        st.caption.assert_called_once_with("No results found")
        st.dataframe.assert_not_called()
        st.columns.assert_not_called()


    def test_row_click_hands_over_the_selected_record(self):
        st = MagicMock()
        st.text_input.return_value = ""
        st.dataframe.return_value.selection.rows = [1]
        engine = get_table_engine({}, "members")
        rows = [{"name": "Ana"}, {"name": "Ben"}, {"name": "Cai"}]
        clicked = []

        render_data_table(st, engine, rows, [ColumnDescriptor("Name", "name")],
                          key="members", t=Translator().t, on_row_click=clicked.append)

        self.assertEqual(clicked, [{"name": "Ben"}])
        kwargs = st.dataframe.call_args.kwargs
        self.assertEqual(kwargs["on_select"], "rerun")
        self.assertEqual(kwargs["selection_mode"], "single-row")
        self.assertEqual(kwargs["key"], "members_table")

    def test_row_click_without_selection(self):
        st = MagicMock()
        st.text_input.return_value = ""
        st.dataframe.return_value.selection.rows = []
        clicked = []

        render_data_table(st, get_table_engine({}, "members"), [{"name": "Ana"}], [ColumnDescriptor("Name", "name")],
                          key="members", t=Translator().t, on_row_click=clicked.append)

        self.assertEqual(clicked, [])

    def test_plain_table_is_not_selectable(self):
        st = MagicMock()
        st.text_input.return_value = ""
        render_data_table(st, get_table_engine({}, "members"), [{"name": "Ana"}], [ColumnDescriptor("Name", "name")],
                          key="members", t=Translator().t)
        self.assertNotIn("on_select", st.dataframe.call_args.kwargs)


if __name__ == "__main__":
    unittest.main()
