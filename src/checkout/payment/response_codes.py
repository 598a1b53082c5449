"""Gateway response codes and the messages shown to shoppers.

``000`` is the only success code. Codes missing from the table map to a
generic failure message.
"""

SUCCESS_CODE = "000"
GENERIC_FAILURE_MESSAGE = "Payment failed"

RESPONSE_MESSAGES = {
    "001": "Card company hasn't authorized the transaction",
    "002": "Blocked card",
    "003": "Invalid card number",
    "004": "Card company temporarily unavailable",
    "005": "Technical error",
    "006": "Invalid transaction type",
    "007": "Card company doesn't honor this card",
    "008": "Terminal number doesn't match the supplier",
    "009": "No such credit type",
    "010": "Transaction timeout",
    "011": "Card expired",
    "012": "Wrong expiration date",
    "013": "Installment count not allowed",
    "014": "CVV check failed",
    "015": "Card not valid for this transaction",
    "016": "Sum exceeds card limit",
    "017": "Terminal inactive",
    "018": "Refused by Tranzila",
    "019": "Suspected fraud",
    "020": "Contact credit company",
    "021": "Foreign cards are not allowed",
    "022": "Authentication failed",
    "023": "Authentication required",
    "024": "Card holder ID check failed",
    "025": "Duplicate transaction",
    "026": "Terminal blocked",
    "027": "Invalid response",
    "028": "Card holder already has active deal",
    "029": "Supplier not authorized for credit",
    "030": "Supplier not authorized for installments",
    "031": "Supplier not authorized for this credit type",
    "032": "Supplier not authorized for foreign cards",
    "033": "Supplier not authorized for club cards",
    "034": "Card not valid for club installments",
    "035": "Card not valid for credit type",
    "036": "Card not valid for club credit",
    "037": "Card not valid for foreign card credit",
    "038": "Card not valid for JCB credit",
    "039": "Card not valid for Amex credit",
    "040": "Card not valid for Diners credit",
    "041": "Invalid currency",
    "042": "Invalid club code",
    "043": "Invalid number of payments",
    "044": "Invalid first payment",
    "045": "Invalid fixed payment",
    "046": "Invalid credit type",
    "047": "Transaction sum too low",
    "048": "Invalid expiration date",
    "049": "Invalid CVV",
    "050": "Invalid ID number",
    "051": "Invalid email",
    "052": "Invalid phone number",
    "053": "Invalid address",
    "054": "Invalid customer name",
    "055": "Invalid product description",
    "056": "Invalid transaction currency",
    "057": "Invalid transaction sum",
    "058": "Invalid terminal",
    "059": "Invalid token",
    "060": "Invalid request",
    "061": "Duplicate request",
    "062": "Transaction already processed",
    "063": "Transaction not found",
    "064": "Transaction cancelled",
    "065": "Transaction expired",
    "066": "Transaction failed",
    "067": "Transaction pending",
    "068": "Transaction rejected",
    "069": "Transaction reversed",
    "070": "Transaction approved",
    "071": "Transaction not approved",
    "072": "Transaction not completed",
    "073": "Transaction not authorized",
    "074": "Transaction not settled",
    "075": "Transaction not voided",
    "076": "Transaction not refunded",
    "077": "Transaction not captured",
    "078": "Transaction not cancelled",
    "079": "Transaction not reversed",
    "080": "Transaction not approved by 3D Secure",
    "081": "Transaction not approved by AVS",
    "082": "Transaction not approved by CVV",
    "083": "Transaction not approved by fraud detection",
    "084": "Transaction not approved by risk management",
    "085": "Transaction not approved by velocity check",
    "086": "Transaction not approved by address verification",
    "087": "Transaction not approved by zip code verification",
    "088": "Transaction not approved by phone verification",
    "089": "Transaction not approved by email verification",
    "090": "Transaction not approved by IP verification",
    "091": "Transaction not approved by device verification",
    "092": "Transaction not approved by browser verification",
    "093": "Transaction not approved by geolocation verification",
    "094": "Transaction not approved by time verification",
    "095": "Transaction not approved by amount verification",
    "096": "Transaction not approved by frequency verification",
    "097": "Transaction not approved by recurrence verification",
    "098": "Transaction not approved by merchant verification",
    "099": "Transaction not approved by customer verification",
}


def normalize_code(code) -> str | None:
    """Strip whitespace and left-pad numeric codes to three digits."""
    if code is None:
        return None
    code = str(code).strip()
    if not code:
        return None
    return code.zfill(3) if code.isdigit() else code


def is_success(code) -> bool:
    return normalize_code(code) == SUCCESS_CODE


def describe_response_code(code) -> str:
    return RESPONSE_MESSAGES.get(normalize_code(code), GENERIC_FAILURE_MESSAGE)
