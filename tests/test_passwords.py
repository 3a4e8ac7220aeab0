import unittest

from planmarket.domain.passwords import SPECIAL_CHARACTERS, check_password, generate_password


class PasswordPolicyTests(unittest.TestCase):
    def test_strong_password_passes(self):
        checks = check_password('Secret1!')
        self.assertTrue(checks.ok)
        self.assertEqual(checks.missing(), [])

    def test_reports_missing_classes(self):
        checks = check_password('secret')
        self.assertFalse(checks.ok)
        self.assertEqual(checks.missing(), ['min_length', 'uppercase', 'digit', 'special'])

    def test_empty_password(self):
        self.assertFalse(check_password(None).ok)

    def test_generated_passwords_meet_policy(self):
        for _ in range(100):
            password = generate_password()
            self.assertEqual(len(password), 12)
            self.assertTrue(check_password(password).ok, password)
            self.assertTrue(any(char in SPECIAL_CHARACTERS for char in password))

    def test_generated_length(self):
        self.assertEqual(len(generate_password(20)), 20)


if __name__ == '__main__':
    unittest.main()
