import unittest
from datetime import date, datetime

from dividend_scanner import utils


class TestUtils(unittest.TestCase):
    def test_compact_date(self):
        self.assertEqual(utils.compact_date("2024-03-15"), 20240315)
        self.assertEqual(utils.compact_date(date(2024, 3, 15)), 20240315)
        self.assertEqual(utils.compact_date(datetime(2024, 3, 15, 12, 30)), 20240315)

    def test_parse_ex_date(self):
        self.assertEqual(utils.parse_ex_date("Handlas utan utdelning: 2024-05-02"), 20240502)
        self.assertIsNone(utils.parse_ex_date("Handlas utan utdelning: imorgon"))

    def test_parse_dividend(self):
        div = utils.parse_dividend("Ordinarie utdelning:\n 3,75 EUR")
        self.assertAlmostEqual(div.amount, 3.75)
        self.assertEqual(div.currency, "EUR")
        self.assertEqual(div.digits, 375)

        div = utils.parse_dividend("Ordinarie utdelning: 12,50 SEK")
        self.assertAlmostEqual(div.amount, 12.5)
        self.assertEqual(div.digits, 1250)

    def test_parse_dividend_without_token(self):
        self.assertIsNone(utils.parse_dividend("Ordinarie utdelning: 12.50 SEK"))
        self.assertIsNone(utils.parse_dividend("Ordinarie utdelning: 5 SEK"))
        self.assertIsNone(utils.parse_dividend("Ordinarie utdelning:"))

    def test_parse_price(self):
        self.assertAlmostEqual(utils.parse_price("212,40"), 212.4)
        self.assertAlmostEqual(utils.parse_price(" 1\xa0234,50 "), 1234.5)
        self.assertIsNone(utils.parse_price("-"))
        self.assertIsNone(utils.parse_price(""))
        self.assertIsNone(utils.parse_price("\\u2212"))
        self.assertIsNone(utils.parse_price("n/a"))

    def test_composite_score(self):
        # 12,50 EUR at a price of 200 EUR with EUR_SEK 10.0
        self.assertAlmostEqual(utils.composite_score(1250, 200 * 10.0), 3250.0)
        self.assertAlmostEqual(utils.composite_score(375, 0.0), 375.0)

    def test_investment_ratio(self):
        self.assertAlmostEqual(utils.investment_ratio(2000.0, 125.0), 16.0)
        self.assertIsNone(utils.investment_ratio(2000.0, 0.0))
        self.assertAlmostEqual(utils.investment_ratio(0.0, 10.0), 0.0)


if __name__ == "__main__":
    unittest.main()
