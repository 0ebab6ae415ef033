import unittest

from portsentry import (
    Category,
    ListeningEntry,
    categorize,
    category_counts,
    filter_entries,
    parse_category,
)


def entry(port, pid, name="proc", user="alice", address="127.0.0.1"):
    return ListeningEntry(port, pid, name, user, address)


class TestCategorize(unittest.TestCase):
    def test_total_and_deterministic(self):
        for port in range(0, 65536):
            first = categorize(port)
            self.assertIsInstance(first, Category)
            self.assertIs(categorize(port), first)

    def test_database_literals_win(self):
        for port in (2379, 3306, 5432, 5433, 6379, 6380, 9200, 9300, 11211, 27017, 27018):
            with self.subTest(port=port):
                self.assertIs(categorize(port), Category.DATABASE)

    def test_web_dev(self):
        for port in (80, 443, 3000, 3999, 4200, 5173, 5174, 5500, 8080, 8089):
            with self.subTest(port=port):
                self.assertIs(categorize(port), Category.WEB_DEV)

    def test_backend(self):
        for port in (4000, 4999, 5000, 5100, 8000, 8079, 8090, 8999, 9000, 9999):
            with self.subTest(port=port):
                self.assertIs(categorize(port), Category.BACKEND)

    def test_low_ports_are_system(self):
        for port in (0, 22, 53, 631, 1023):
            with self.subTest(port=port):
                self.assertIs(categorize(port), Category.SYSTEM)

    def test_everything_else_is_other(self):
        for port in (1024, 2000, 5101, 10000, 49152, 65535):
            with self.subTest(port=port):
                self.assertIs(categorize(port), Category.OTHER)

    def test_out_of_range(self):
        with self.assertRaises(ValueError):
            categorize(65536)
        with self.assertRaises(ValueError):
            categorize(-1)

    def test_entry_category(self):
        self.assertIs(entry(5432, 1).category, Category.DATABASE)


class TestParseCategory(unittest.TestCase):
    def test_names_and_labels(self):
        self.assertIs(parse_category("webdev"), Category.WEB_DEV)
        self.assertIs(parse_category("Web Dev"), Category.WEB_DEV)
        self.assertIs(parse_category("web-dev"), Category.WEB_DEV)
        self.assertIs(parse_category("WEB_DEV"), Category.WEB_DEV)
        self.assertIs(parse_category("database"), Category.DATABASE)
        self.assertIs(parse_category("Other"), Category.OTHER)

    def test_all_means_no_filter(self):
        self.assertIsNone(parse_category("all"))
        self.assertIsNone(parse_category(""))
        self.assertIsNone(parse_category(None))

    def test_unknown(self):
        with self.assertRaises(ValueError):
            parse_category("frontend")


class TestFilterEntries(unittest.TestCase):
    def setUp(self):
        self.entries = [
            entry(8080, 300, "Python"),
            entry(22, 1, "sshd", user="root", address="*"),
            entry(5432, 812, "postgres"),
            entry(3000, 41234, "node"),
        ]

    def test_sorted_by_port(self):
        ports = [e.port for e in filter_entries([entry(8080, 1), entry(22, 2), entry(5432, 3)])]
        self.assertEqual(ports, [22, 5432, 8080])

    def test_ties_keep_input_order(self):
        dual = [entry(8080, 9), entry(22, 1), entry(8080, 4)]
        self.assertEqual([e.pid for e in filter_entries(dual)], [1, 9, 4])

    def test_category_then_text(self):
        result = filter_entries(self.entries, Category.DATABASE, "54")
        self.assertEqual([e.port for e in result], [5432])

    def test_text_matches_name_case_insensitively(self):
        result = filter_entries(self.entries, search_text="PYTH")
        self.assertEqual([e.pid for e in result], [300])

    def test_text_matches_port_and_pid(self):
        self.assertEqual([e.port for e in filter_entries(self.entries, search_text="808")], [8080])
        self.assertEqual([e.port for e in filter_entries(self.entries, search_text="4123")], [3000])

    def test_no_filters_returns_everything(self):
        self.assertEqual(len(filter_entries(self.entries)), 4)

    def test_no_match(self):
        self.assertEqual(filter_entries(self.entries, Category.BACKEND), [])

    def test_does_not_mutate_input(self):
        before = list(self.entries)
        filter_entries(self.entries, Category.SYSTEM, "ssh")
        self.assertEqual(self.entries, before)


class TestCategoryCounts(unittest.TestCase):
    def test_canonical_order_without_empty_categories(self):
        entries = [entry(22, 1), entry(5432, 2), entry(3000, 3), entry(3001, 4), entry(50000, 5)]
        self.assertEqual(category_counts(entries), [
            (Category.WEB_DEV, 2),
            (Category.DATABASE, 1),
            (Category.SYSTEM, 1),
            (Category.OTHER, 1),
        ])

    def test_empty(self):
        self.assertEqual(category_counts([]), [])


if __name__ == "__main__":
    unittest.main()
