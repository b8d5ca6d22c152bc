import json
import os
import tempfile
import unittest

from game import CatalogError, Element, Rule, Rules, card_to_json, default_catalog, load_catalog


def _entry(cid, top=1, right=1, bottom=1, left=1, element=None, level=1):
    return {"id": cid, "name": f"c{cid}", "level": level, "powTop": top, "powRight": right,
            "powBottom": bottom, "powLeft": left, "element": element}


class TestCardCatalog(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, entries):
        path = os.path.join(self._tmp.name, "cards.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"cards": entries}, f)
        return path

    def test_given_bundled_catalog_when_loaded_then_cards_are_ordered_and_typed(self):
        catalog = default_catalog()
        self.assertEqual(len(catalog), 30)
        ids = [c.id for c in catalog]
        self.assertEqual(ids, sorted(ids))
        geezard = catalog.get(0)
        self.assertEqual(geezard.ranks(), (1, 4, 1, 5))
        self.assertIsNone(geezard.element)
        self.assertIs(catalog.get(4).element, Element.ICE)
        self.assertEqual(len(catalog.by_levels([10])), 3)

    def test_given_card_when_serialized_then_asset_keys_round_trip(self):
        card = default_catalog().get(4)
        obj = card_to_json(card)
        self.assertEqual(obj["powTop"], card.top)
        self.assertEqual(obj["element"], "ice")

    def test_given_mixed_case_element_when_loaded_then_parsed(self):
        catalog = load_catalog(self._write([_entry(0, element="Thunder"), _entry(1, element="HOLY")]))
        self.assertIs(catalog.get(0).element, Element.THUNDER)
        self.assertIs(catalog.get(1).element, Element.HOLY)

    def test_given_bad_entries_when_loaded_then_catalog_error(self):
        bad_sets = [
            [_entry(0, top=11)],
            [_entry(0, left=-1)],
            [_entry(0, level=0)],
            [_entry(0, element="plasma")],
            [_entry(0), _entry(0)],
            [],
            [{"id": 3, "name": "no ranks"}],
        ]
        for entries in bad_sets:
            with self.assertRaises(CatalogError):
                load_catalog(self._write(entries))

    def test_given_unknown_id_when_get_then_catalog_error(self):
        with self.assertRaises(CatalogError):
            default_catalog().get(999)

    def test_given_rule_names_when_parsed_then_flags_set(self):
        rules = Rules.from_names(["same", "same_wall", "Sudden-Death", ""])
        self.assertTrue(rules.same)
        self.assertTrue(rules.same_wall)
        self.assertTrue(rules.sudden_death)
        self.assertFalse(rules.plus)
        self.assertFalse(rules.toggled(Rule.SAME).same)
        self.assertEqual(Rules.from_json(rules.to_json()), rules)
        with self.assertRaises(ValueError):
            Rules.from_names(["chaos"])

    def test_given_non_boolean_flags_when_loading_rules_json_then_value_error(self):
        for bad in ({"same": "false"}, {"plus": 1}, {"open": None}, ["same"]):
            with self.assertRaises(ValueError):
                Rules.from_json(bad)
        self.assertEqual(Rules.from_json({"same": True, "unknown": "x"}), Rules(same=True))


if __name__ == '__main__':
    unittest.main(verbosity=2)
