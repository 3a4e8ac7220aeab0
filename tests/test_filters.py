import unittest

from planmarket.domain.filters import SearchFilters, coerce_filter_values
from planmarket.errors import ValidationError


class SearchFiltersTests(unittest.TestCase):
    def test_merge_only_touches_named_fields(self):
        filters = SearchFilters(min_bedrooms=3, style='modern')
        merged = filters.merge({'max_price': 200000})
        self.assertEqual(merged.min_bedrooms, 3)
        self.assertEqual(merged.style, 'modern')
        self.assertEqual(merged.max_price, 200000)
        # The original is untouched
        self.assertIsNone(filters.max_price)

    def test_merge_accepts_camel_case_keys(self):
        merged = SearchFilters().merge({'minBedrooms': 2, 'hasPool': True})
        self.assertEqual(merged.min_bedrooms, 2)
        self.assertTrue(merged.has_pool)

    def test_none_clears_a_constraint(self):
        merged = SearchFilters(min_price=1000).merge({'min_price': None})
        self.assertTrue(merged.is_empty())

    def test_unknown_key_is_rejected(self):
        with self.assertRaises(ValidationError):
            SearchFilters().merge({'colour': 'blue'})

    def test_zero_is_a_real_bound(self):
        filters = SearchFilters().merge({'garages': 0})
        self.assertEqual(filters.to_dict(), {'garages': 0})

    def test_record_uses_camel_case(self):
        filters = SearchFilters(min_bedrooms=3, max_price=200000.0)
        self.assertEqual(filters.to_record(), {'minBedrooms': 3, 'maxPrice': 200000.0})

    def test_from_dict_drops_unknown_keys(self):
        filters = SearchFilters.from_dict({'minBedrooms': '3', 'legacyField': 'x'})
        self.assertEqual(filters, SearchFilters(min_bedrooms=3))

    def test_from_dict_restores_saved_record(self):
        original = SearchFilters(style='modern', min_bathrooms=1.5, has_pool=False)
        self.assertEqual(SearchFilters.from_dict(original.to_record()), original)


class CoerceFilterValuesTests(unittest.TestCase):
    def test_form_strings_are_converted(self):
        values = coerce_filter_values({
            'min_bedrooms': '3',
            'maxPrice': '200,000',
            'has_pool': 'true',
            'style': '  modern ',
        })
        self.assertEqual(values, {
            'min_bedrooms': 3,
            'max_price': 200000.0,
            'has_pool': True,
            'style': 'modern',
        })

    def test_blank_and_invalid_values_clear(self):
        values = coerce_filter_values({'min_bedrooms': '', 'max_price': 'cheap', 'style': '', 'has_pool': 'maybe'})
        self.assertEqual(values, {'min_bedrooms': None, 'max_price': None, 'style': None, 'has_pool': None})

    def test_non_finite_numbers_are_unset(self):
        values = coerce_filter_values({
            'minBedrooms': 'inf',
            'max_bedrooms': float('-inf'),
            'max_price': 'nan',
            'min_floor_area': '1e400',
            'garages': 10 ** 400,
        })
        self.assertEqual(values, {
            'min_bedrooms': None,
            'max_bedrooms': None,
            'max_price': None,
            'min_floor_area': None,
            'garages': None,
        })

    def test_unknown_keys_pass_through_for_merge_to_reject(self):
        values = coerce_filter_values({'colour': 'blue'})
        with self.assertRaises(ValidationError):
            SearchFilters().merge(values)


if __name__ == '__main__':
    unittest.main()
