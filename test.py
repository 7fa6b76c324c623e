import unittest
from contracting.client import ContractingClient
from pathlib import Path

TRANSFER_AMOUNT = 1_000_000_000


class TestLottyToken(unittest.TestCase):
    def setUp(self):
        self.client = ContractingClient()
        self.client.flush() # Ensures a clean state

        # Define user accounts
        self.operator = 'sys' # Submits the contract, so becomes owner, exempt and fee accumulator
        self.fee_account = 'fee_account'
        self.alice = 'alice' # Starts with TRANSFER_AMOUNT tokens
        self.bob = 'bob'
        self.carol = 'carol' # Approved to spend alice's balance

        self.token_name = "con_lotty"

        contracts_dir = Path(__file__).resolve().parent
        with open(contracts_dir / "con_lotty.py") as f:
            self.client.submit(f.read(), name=self.token_name, signer=self.operator)

        self.token = self.client.get_contract(self.token_name)

        self.token.set_fee_accumulator(address=self.fee_account, signer=self.operator)
        self.token.transfer(amount=TRANSFER_AMOUNT, to=self.alice, signer=self.operator)
        self.token.approve(amount=TRANSFER_AMOUNT, to=self.carol, signer=self.alice)

    def tearDown(self):
        self.client.flush()

    def assert_balances(self, alice, bob, fee_account):
        self.assertEqual(self.token.balance_of(address=self.alice), alice)
        self.assertEqual(self.token.balance_of(address=self.bob), bob)
        self.assertEqual(self.token.balance_of(address=self.fee_account), fee_account)

    def event_payloads(self, output, event_name):
        # Indexed and non-indexed params are reported separately
        return [
            {**event.get('data_indexed', {}), **event.get('data', {})}
            for event in output['events'] if event['event'] == event_name
        ]

    # --- Transfers ---
    def test_transfer_event_reports_received_amount_and_fee(self):
        print("\n--- Test: Transfer Event Reports Received Amount And Fee ---")
        output = self.token.set_fee_rate(
            address=self.bob, fee_from=0, fee_to=1000, signer=self.operator, return_full_output=True
        )
        self.assertEqual(
            self.event_payloads(output, "FeeRateChanged"),
            [{"address": self.bob, "fee_from": 0, "fee_to": 1000}]
        )

        output = self.token.transfer(
            amount=TRANSFER_AMOUNT, to=self.bob, signer=self.alice, return_full_output=True
        )
        self.assertEqual(output['result'], 100_000_000)
        self.assertEqual(self.event_payloads(output, "Transfer"), [{
            "from": self.alice,
            "to": self.bob,
            "amount": 900_000_000,
            "fee": 100_000_000,
            "fee_recipient": self.fee_account
        }])

    def test_transfer_without_fee_rates_is_not_taxed(self):
        print("\n--- Test: Transfer Without Fee Rates ---")
        fee = self.token.transfer(amount=TRANSFER_AMOUNT, to=self.bob, signer=self.alice)

        self.assertEqual(fee, 0)
        self.assert_balances(alice=0, bob=TRANSFER_AMOUNT, fee_account=0)

    def test_transfer_to_account_with_fee_to(self):
        print("\n--- Test: Transfer To Account With fee_to ---")
        fee_amount = 1000 * TRANSFER_AMOUNT // 10_000 # 10% fee

        self.token.set_fee_rate(address=self.bob, fee_from=0, fee_to=1000, signer=self.operator)
        fee = self.token.transfer(amount=TRANSFER_AMOUNT, to=self.bob, signer=self.alice)

        self.assertEqual(fee, fee_amount)
        self.assert_balances(alice=0, bob=900_000_000, fee_account=100_000_000)

    def test_transfer_from_account_with_fee_from(self):
        print("\n--- Test: Transfer From Account With fee_from ---")
        fee_amount = 1000 * TRANSFER_AMOUNT // 10_000

        # bob's outbound rate does not apply while bob is the recipient
        self.token.set_fee_rate(address=self.bob, fee_from=1000, fee_to=0, signer=self.operator)
        self.token.transfer(amount=TRANSFER_AMOUNT, to=self.bob, signer=self.alice)
        self.assert_balances(alice=0, bob=TRANSFER_AMOUNT, fee_account=0)

        self.token.transfer(amount=TRANSFER_AMOUNT, to=self.alice, signer=self.bob)
        self.assert_balances(alice=TRANSFER_AMOUNT - fee_amount, bob=0, fee_account=fee_amount)

    def test_fee_from_and_fee_to_are_summed(self):
        print("\n--- Test: fee_from And fee_to Are Summed ---")
        self.token.set_fee_rate(address=self.alice, fee_from=1000, fee_to=0, signer=self.operator)
        self.token.set_fee_rate(address=self.bob, fee_from=0, fee_to=1000, signer=self.operator)
        fee = self.token.transfer(amount=TRANSFER_AMOUNT, to=self.bob, signer=self.alice)

        self.assertEqual(fee, 200_000_000)
        self.assert_balances(alice=0, bob=800_000_000, fee_account=200_000_000)

    def test_transfer_from_exempt_account_is_not_taxed(self):
        print("\n--- Test: Transfer From Exempt Account ---")
        self.token.set_fee_exempt(address=self.alice, exempt=True, signer=self.operator)
        self.token.transfer(amount=TRANSFER_AMOUNT, to=self.bob, signer=self.alice)

        self.assert_balances(alice=0, bob=TRANSFER_AMOUNT, fee_account=0)

    def test_transfer_to_exempt_account_is_not_taxed(self):
        print("\n--- Test: Transfer To Exempt Account ---")
        self.token.set_fee_exempt(address=self.bob, exempt=True, signer=self.operator)
        self.token.transfer(amount=TRANSFER_AMOUNT, to=self.bob, signer=self.alice)

        self.assert_balances(alice=0, bob=TRANSFER_AMOUNT, fee_account=0)

    def test_exempt_sender_ignores_fee_rates(self):
        print("\n--- Test: Exempt Sender Ignores Fee Rates ---")
        self.token.set_fee_rate(address=self.alice, fee_from=1000, fee_to=1000, signer=self.operator)
        self.token.set_fee_rate(address=self.bob, fee_from=1000, fee_to=1000, signer=self.operator)
        self.token.set_fee_exempt(address=self.alice, exempt=True, signer=self.operator)
        fee = self.token.transfer(amount=TRANSFER_AMOUNT, to=self.bob, signer=self.alice)

        self.assertEqual(fee, 0)
        self.assert_balances(alice=0, bob=TRANSFER_AMOUNT, fee_account=0)

    def test_exempt_recipient_ignores_fee_rates(self):
        print("\n--- Test: Exempt Recipient Ignores Fee Rates ---")
        self.token.set_fee_rate(address=self.alice, fee_from=1000, fee_to=1000, signer=self.operator)
        self.token.set_fee_rate(address=self.bob, fee_from=1000, fee_to=1000, signer=self.operator)
        self.token.set_fee_exempt(address=self.bob, exempt=True, signer=self.operator)
        fee = self.token.transfer(amount=TRANSFER_AMOUNT, to=self.bob, signer=self.alice)

        self.assertEqual(fee, 0)
        self.assert_balances(alice=0, bob=TRANSFER_AMOUNT, fee_account=0)

    def test_transfer_exceeding_balance_fails(self):
        print("\n--- Test: Transfer Exceeding Balance ---")
        with self.assertRaisesRegex(AssertionError, "InsufficientBalance"):
            self.token.transfer(amount=TRANSFER_AMOUNT + 1, to=self.bob, signer=self.alice)

        self.assert_balances(alice=TRANSFER_AMOUNT, bob=0, fee_account=0)

    # --- Approval transfers ---
    def test_transfer_from_without_fee_rates_is_not_taxed(self):
        print("\n--- Test: transfer_from Without Fee Rates ---")
        self.token.transfer_from(amount=TRANSFER_AMOUNT, to=self.bob, main_account=self.alice, signer=self.carol)

        self.assert_balances(alice=0, bob=TRANSFER_AMOUNT, fee_account=0)

    def test_transfer_from_to_account_with_fee_to(self):
        print("\n--- Test: transfer_from To Account With fee_to ---")
        self.token.set_fee_rate(address=self.bob, fee_from=0, fee_to=1000, signer=self.operator)
        fee = self.token.transfer_from(amount=TRANSFER_AMOUNT, to=self.bob, main_account=self.alice, signer=self.carol)

        self.assertEqual(fee, 100_000_000)
        self.assert_balances(alice=0, bob=900_000_000, fee_account=100_000_000)

    def test_transfer_from_owner_with_fee_from(self):
        print("\n--- Test: transfer_from Owner With fee_from ---")
        # The fee follows the owner of the funds, not the spender
        self.token.set_fee_rate(address=self.alice, fee_from=1000, fee_to=0, signer=self.operator)
        self.token.set_fee_rate(address=self.carol, fee_from=1000, fee_to=1000, signer=self.operator)
        self.token.transfer_from(amount=TRANSFER_AMOUNT, to=self.bob, main_account=self.alice, signer=self.carol)

        self.assert_balances(alice=0, bob=900_000_000, fee_account=100_000_000)

    def test_transfer_from_sums_fee_rates(self):
        print("\n--- Test: transfer_from Sums Fee Rates ---")
        self.token.set_fee_rate(address=self.alice, fee_from=1000, fee_to=0, signer=self.operator)
        self.token.set_fee_rate(address=self.bob, fee_from=0, fee_to=1000, signer=self.operator)
        self.token.transfer_from(amount=TRANSFER_AMOUNT, to=self.bob, main_account=self.alice, signer=self.carol)

        self.assert_balances(alice=0, bob=800_000_000, fee_account=200_000_000)

    def test_transfer_from_exempt_owner_ignores_fee_rates(self):
        print("\n--- Test: transfer_from Exempt Owner Ignores Fee Rates ---")
        self.token.set_fee_rate(address=self.alice, fee_from=1000, fee_to=1000, signer=self.operator)
        self.token.set_fee_rate(address=self.bob, fee_from=1000, fee_to=1000, signer=self.operator)
        self.token.set_fee_exempt(address=self.alice, exempt=True, signer=self.operator)
        self.token.transfer_from(amount=TRANSFER_AMOUNT, to=self.bob, main_account=self.alice, signer=self.carol)

        self.assert_balances(alice=0, bob=TRANSFER_AMOUNT, fee_account=0)

    def test_transfer_from_exempt_recipient_ignores_fee_rates(self):
        print("\n--- Test: transfer_from Exempt Recipient Ignores Fee Rates ---")
        self.token.set_fee_rate(address=self.alice, fee_from=1000, fee_to=1000, signer=self.operator)
        self.token.set_fee_rate(address=self.bob, fee_from=1000, fee_to=1000, signer=self.operator)
        self.token.set_fee_exempt(address=self.bob, exempt=True, signer=self.operator)
        self.token.transfer_from(amount=TRANSFER_AMOUNT, to=self.bob, main_account=self.alice, signer=self.carol)

        self.assert_balances(alice=0, bob=TRANSFER_AMOUNT, fee_account=0)

    def test_transfer_from_spends_pre_fee_allowance(self):
        print("\n--- Test: transfer_from Spends Pre-Fee Allowance ---")
        half = TRANSFER_AMOUNT // 2
        self.token.set_fee_rate(address=self.bob, fee_from=0, fee_to=1000, signer=self.operator)
        self.token.transfer_from(amount=half, to=self.bob, main_account=self.alice, signer=self.carol)

        self.assertEqual(self.token.allowance(owner=self.alice, spender=self.carol), TRANSFER_AMOUNT - half)

    def test_transfer_from_exceeding_allowance_fails(self):
        print("\n--- Test: transfer_from Exceeding Allowance ---")
        self.token.transfer(amount=1, to=self.alice, signer=self.operator)

        with self.assertRaisesRegex(AssertionError, "InsufficientAllowance"):
            self.token.transfer_from(amount=TRANSFER_AMOUNT + 1, to=self.bob, main_account=self.alice, signer=self.carol)

        self.assertEqual(self.token.allowance(owner=self.alice, spender=self.carol), TRANSFER_AMOUNT)
        self.assert_balances(alice=TRANSFER_AMOUNT + 1, bob=0, fee_account=0)

    def test_failed_transfer_from_keeps_allowance(self):
        print("\n--- Test: Failed transfer_from Keeps Allowance ---")
        self.token.approve(amount=TRANSFER_AMOUNT * 2, to=self.carol, signer=self.alice)

        with self.assertRaisesRegex(AssertionError, "InsufficientBalance"):
            self.token.transfer_from(amount=TRANSFER_AMOUNT * 2, to=self.bob, main_account=self.alice, signer=self.carol)

        self.assertEqual(self.token.allowance(owner=self.alice, spender=self.carol), TRANSFER_AMOUNT * 2)
        self.assert_balances(alice=TRANSFER_AMOUNT, bob=0, fee_account=0)


if __name__ == '__main__':
    unittest.main()
