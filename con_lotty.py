balances = Hash(default_value=0)
metadata = Hash()

fee_exempt = Hash(default_value=False)
fee_rates = Hash() # {'fee_from': bps, 'fee_to': bps}, missing entry means no fee
fee_accumulator_address = Variable()

TOTAL_SUPPLY = 1_000_000_000_000 * 1_000_000_000_000_000_000 # 1 trillion tokens, 18 decimals
DECIMALS = 18
BASIS_POINTS = 10000
MAX_FEE_BPS = 1000 # 10% per address, per direction

ZERO_ADDRESS = '0000000000000000000000000000000000000000000000000000000000000000'
UNLIMITED_ALLOWANCE = 0xffffffffffffffffffffffffffffffffffffffffffffffffffffffffffffffff

PROTECTED_METADATA = ['operator', 'total_supply', 'token_decimals']

# Events
TransferEvent = LogEvent(
    event="Transfer",
    params={
        "from": {'type': str, 'idx': True},
        "to": {'type': str, 'idx': True},
        "amount": {'type': (int, float, decimal)}, # What the recipient actually got
        "fee": {'type': (int, float, decimal)},
        "fee_recipient": {'type': str, 'idx': False}
    })

ApproveEvent = LogEvent(
    event="Approve",
    params={
        "from": {'type': str, 'idx': True},
        "to": {'type': str, 'idx': True},
        "amount": {'type': (int, float, decimal)}
    })

FeeAccumulatorChanged = LogEvent(
    event="FeeAccumulatorChanged",
    params={
        "previous": {'type': str, 'idx': True},
        "current": {'type': str, 'idx': True}
    })

FeeRateChanged = LogEvent(
    event="FeeRateChanged",
    params={
        "address": {'type': str, 'idx': True},
        "fee_from": {'type': int},
        "fee_to": {'type': int}
    })

OwnershipTransferred = LogEvent(
    event="OwnershipTransferred",
    params={
        "previous_owner": {'type': str, 'idx': True},
        "new_owner": {'type': str, 'idx': True}
    })

@construct
def seed():
    balances[ctx.caller] = TOTAL_SUPPLY

    metadata['token_name'] = "LOTTY"
    metadata['token_symbol'] = "LOTTY"
    metadata['token_decimals'] = DECIMALS
    metadata['total_supply'] = TOTAL_SUPPLY
    metadata['operator'] = ctx.caller

    fee_exempt[ctx.caller] = True
    fee_accumulator_address.set(ctx.caller)

def assert_operator():
    assert ctx.caller == metadata['operator'], 'Unauthorized: caller is not the owner!'

def assert_not_zero(address: str):
    assert address != ZERO_ADDRESS, 'InvalidAddress: zero address not allowed!'

def rates_of(address: str):
    rates = fee_rates[address]
    if rates is None:
        return {'fee_from': 0, 'fee_to': 0}
    return rates

def calculate_fee(amount: int, fee_from: int, fee_to: int, sender_exempt: bool, recipient_exempt: bool):
    # Exemption on either side ignores the other side's rate as well
    if sender_exempt or recipient_exempt:
        return 0
    return amount * (fee_from + fee_to) // BASIS_POINTS

def fee_for(sender: str, recipient: str, amount: int):
    return calculate_fee(
        amount=amount,
        fee_from=rates_of(sender)['fee_from'],
        fee_to=rates_of(recipient)['fee_to'],
        sender_exempt=fee_exempt[sender],
        recipient_exempt=fee_exempt[recipient]
    )

def assert_amount(amount: int):
    # Balances and allowances are whole base units
    assert isinstance(amount, int), f'InvalidAmount: amount {amount} must be a whole number of base units!'
    assert amount >= 0, f'InvalidAmount: amount {amount} cannot be negative!'

def apply_transfer(sender: str, recipient: str, amount: int):
    assert_amount(amount)
    assert recipient != ZERO_ADDRESS, 'InvalidAddress: cannot transfer to the zero address!'

    sender_bal = balances[sender]
    assert sender_bal >= amount, f'InsufficientBalance: transfer amount {amount} exceeds balance {sender_bal} for {sender}!'

    fee = fee_for(sender, recipient, amount)
    fee_recipient = fee_accumulator_address.get()

    # The fee comes out of what the recipient receives, the sender always pays `amount`
    balances[sender] = sender_bal - amount
    balances[recipient] += amount - fee
    if fee > 0:
        balances[fee_recipient] += fee

    TransferEvent({
        "from": sender,
        "to": recipient,
        "amount": amount - fee,
        "fee": fee,
        "fee_recipient": fee_recipient
    })
    return fee

def set_allowance(main_account: str, spender: str, amount: int):
    balances[main_account, spender] = amount
    ApproveEvent({"from": main_account, "to": spender, "amount": amount})

@export
def transfer(amount: int, to: str):
    return apply_transfer(ctx.caller, to, amount)

@export
def approve(amount: int, to: str):
    assert_amount(amount) # Allow 0 for clearing approval
    assert to != ZERO_ADDRESS, 'InvalidAddress: cannot approve the zero address!'
    set_allowance(ctx.caller, to, amount)

@export
def increase_allowance(amount: int, to: str):
    assert_amount(amount)
    assert to != ZERO_ADDRESS, 'InvalidAddress: cannot approve the zero address!'
    # Unlimited stays unlimited
    set_allowance(ctx.caller, to, min(balances[ctx.caller, to] + amount, UNLIMITED_ALLOWANCE))

@export
def decrease_allowance(amount: int, to: str):
    assert_amount(amount)
    current = balances[ctx.caller, to]
    assert current >= amount, f'InsufficientAllowance: cannot decrease allowance {current} by {amount}!'
    set_allowance(ctx.caller, to, current - amount)

@export
def transfer_from(amount: int, to: str, main_account: str):
    spender = ctx.caller

    allowance = balances[main_account, spender]
    assert allowance >= amount, \
        f'InsufficientAllowance: transfer amount {amount} exceeds allowance {allowance} for {main_account} by spender {spender}!'

    fee = apply_transfer(main_account, to, amount)

    # Allowance is spent at the pre-fee amount, whatever the fee turned out to be
    if allowance != UNLIMITED_ALLOWANCE:
        balances[main_account, spender] = allowance - amount

    return fee

@export
def balance_of(address: str):
    return balances[address]

@export
def allowance(owner: str, spender: str):
    return balances[owner, spender]

@export
def total_supply():
    return metadata['total_supply']

@export
def quote_fee(sender: str, recipient: str, amount: int):
    assert_amount(amount)
    return fee_for(sender, recipient, amount)

@export
def set_fee_accumulator(address: str):
    assert_operator()
    assert_not_zero(address)

    previous = fee_accumulator_address.get()
    fee_accumulator_address.set(address)
    FeeAccumulatorChanged({"previous": previous, "current": address})

@export
def set_fee_exempt(address: str, exempt: bool):
    assert_operator()
    assert_not_zero(address)
    fee_exempt[address] = exempt

@export
def set_fee_rate(address: str, fee_from: int, fee_to: int):
    assert_operator()
    assert_not_zero(address)
    assert isinstance(fee_from, int) and isinstance(fee_to, int), 'InvalidFee: fee rates must be whole basis points!'
    assert 0 <= fee_from <= MAX_FEE_BPS, f'InvalidFee: fee_from {fee_from} must be between 0 and {MAX_FEE_BPS}!'
    assert 0 <= fee_to <= MAX_FEE_BPS, f'InvalidFee: fee_to {fee_to} must be between 0 and {MAX_FEE_BPS}!'

    fee_rates[address] = {'fee_from': fee_from, 'fee_to': fee_to}
    FeeRateChanged({"address": address, "fee_from": fee_from, "fee_to": fee_to})

@export
def is_fee_exempt(address: str):
    return fee_exempt[address]

@export
def fee_rate(address: str):
    return rates_of(address)

@export
def fee_accumulator():
    return fee_accumulator_address.get()

@export
def get_owner():
    return metadata['operator']

@export
def transfer_ownership(new_owner: str):
    assert_operator()
    assert new_owner != ZERO_ADDRESS, 'InvalidAddress: new owner is the zero address, use renounce_ownership!'

    previous = metadata['operator']
    metadata['operator'] = new_owner
    OwnershipTransferred({"previous_owner": previous, "new_owner": new_owner})

@export
def renounce_ownership():
    assert_operator()

    previous = metadata['operator']
    metadata['operator'] = ZERO_ADDRESS
    OwnershipTransferred({"previous_owner": previous, "new_owner": ZERO_ADDRESS})

@export
def change_metadata(key: str, value: Any):
    assert_operator()
    assert key not in PROTECTED_METADATA, f'ProtectedKey: metadata key {key} cannot be changed!'
    metadata[key] = value
