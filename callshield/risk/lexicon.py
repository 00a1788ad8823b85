"""
callshield/risk/lexicon.py
===========================
Scam Lexicon — CallShield

Responsibility:
    - Hold the weighted phrase dictionaries for every scam category
    - Hold the four cross-cutting indicator term lists and their bonuses
    - Expose both as read-only, deterministically ordered structures

All phrases are lower-case. Iteration order of categories, phrases and
indicator terms is fixed and drives evidence ordering in analysis results.

Indicator lists are curated for substring matching: very short fragments
that occur inside ordinary words ("now", "ed", "si", "trai", "mining")
are not carried.

This module does NOT:
    - Perform matching or scoring (that is scorer.py)
"""

from types import MappingProxyType

from callshield.risk.signals import IndicatorKind, ScamCategory

LEXICON_VERSION: str = "2024.3"


def _freeze(phrases: dict[str, int]) -> MappingProxyType:
    return MappingProxyType({p.lower(): w for p, w in phrases.items()})


# ---------------------------------------------------------------------------
# Category dictionaries
# ---------------------------------------------------------------------------

_DIGITAL_ARREST = {
    # Impersonated agencies
    "this is from mumbai police cyber cell": 95,
    "main mumbai police se bol raha hun": 95,
    "i am calling from cbi headquarters": 98,
    "this is from enforcement directorate": 95,
    "main ncb officer hun": 98,
    "we are from supreme court of india": 100,
    "arrest warrant has been issued": 98,
    "you are under investigation": 90,
    "cyber crime cell speaking": 95,
    "narcotics control bureau": 98,
    "income tax department raid": 92,
    "customs enforcement calling": 90,
    "delhi police headquarters": 95,
    "central bureau investigation": 98,
    # Isolation and custody
    "you are now under digital arrest": 100,
    "stay on video call until investigation completes": 100,
    "don't disconnect the call or inform anyone": 100,
    "don't involve family lawyer in this matter": 100,
    "this is confidential government matter": 95,
    "case will become serious if you disconnect": 98,
    "you cannot leave until cleared": 100,
    "maintain video call throughout": 100,
    "digital custody until verification": 100,
    "remote arrest proceedings": 100,
    # Fabricated accusations
    "your aadhaar card has been used for illegal activities": 90,
    "parcel containing drugs found in your name": 95,
    "22 complaints filed against your mobile sim": 90,
    "aapke naam se human trafficking ka case": 98,
    "your bank account is being used for money laundering": 95,
    "anti national activities linked to your number": 98,
    "terror charges will be filed": 100,
    "drug trafficking case registered": 95,
    "fake passport found with your details": 95,
    "hawala transaction detected": 90,
    "suspicious international transfers": 88,
    "cybercrime unit has evidence": 92,
    "narcotics found in courier": 95,
    "illegal weapons shipment": 98,
    "human organ trafficking": 100,
    "child trafficking allegations": 100,
    "terrorism funding detected": 100,
    "fake currency circulation": 95,
}

_TRAI_TELECOM = {
    "main trai se bol raha hun": 85,
    "sim card band hone wala hai": 85,
    "this is from telecom regulatory authority": 85,
    "your number will be disconnected in 2 hours": 90,
    "22 complaints registered against your sim": 85,
    "mobile connection has illegal usage": 80,
    "immediate action required on your number": 85,
    "trai compliance violation": 80,
    "sim deactivation process started": 85,
    "telecom fraud detected on your number": 85,
    "press 1 to avoid disconnection": 90,
    "your mobile services will be suspended": 85,
    "department of telecommunications calling": 85,
    "sim card kyc verification failed": 80,
    "illegal call forwarding detected": 82,
    "international roaming misuse": 78,
    "bulk sms violation": 75,
    "telecom license cancellation": 88,
    "sim card cloning detected": 90,
    "unauthorized network access": 82,
}

_COURIER_CUSTOMS = {
    "we are calling from fedex mumbai": 80,
    "your parcel has been confiscated": 85,
    "drugs found in your package": 90,
    "140 grams of narcotic drugs found": 90,
    "parcel contained illegal items": 85,
    "customs clearance fee required": 75,
    "package stuck at customs": 75,
    "custom commission duty and tax": 80,
    "parcel from thailand intercepted": 85,
    "five passports three credit cards found": 90,
    "mdma synthetic narcotics detected": 90,
    "international package security alert": 80,
    "customs duty payment needed immediately": 80,
    "courier company legal notice": 75,
    "dhl package seizure notice": 80,
    "blue dart security department": 78,
    "speed post suspicious package": 75,
    "first flight courier verification": 76,
    "aramex package investigation": 78,
    "gati courier fraud department": 75,
    "dtdc package confiscation": 76,
    "professional courier security": 78,
    "international express detention": 82,
    "air cargo security alert": 85,
    "postal department investigation": 80,
    "package contains contraband": 88,
    "narcotic substances detected": 90,
    "illegal wildlife products": 85,
    "counterfeit currency found": 88,
    "prohibited pharmaceutical items": 82,
}

_INVESTMENT_FRAUD = {
    "exclusive crypto trading opportunity": 70,
    "guaranteed 10x returns": 85,
    "join our private vip group": 75,
    "double your bitcoin in 30 days": 85,
    "government approved digital currency": 80,
    "see screenshots of members profits": 75,
    "offer expires tonight invest now": 80,
    "only 100 slots remaining": 80,
    "professor has been arrested pay to unlock": 85,
    "withdraw restrictions after 24 hours": 80,
    "limited time crypto investment": 75,
    "insider trading tips available": 85,
    "binary options guaranteed profit": 80,
    "forex trading robot": 75,
    "stock market sure shot tips": 75,
    "rbi approved cryptocurrency": 82,
    "sebi registered investment scheme": 78,
    "mutual fund guaranteed returns": 75,
    "ipo early bird offer": 72,
    "share market inside information": 85,
    "commodity trading signals": 70,
    "gold investment scheme": 68,
    "real estate fixed returns": 70,
    "startup equity investment": 75,
    "peer to peer lending": 72,
    "cryptocurrency mining pool": 75,
    "defi staking rewards": 78,
    "nft investment opportunity": 65,
    "metaverse land purchase": 62,
    "blockchain technology investment": 70,
}

_FAMILY_EMERGENCY = {
    "hello beta i am in serious trouble": 95,
    "ive been in an accident dont tell anyone": 95,
    "stuck in dubai canada abroad arrested": 90,
    "phone is broken thats why i sound different": 95,
    "dont tell mom dad about this": 85,
    "police station mein hun urgent help": 90,
    "accident hua hai immediate money needed": 90,
    "kidnappers have me send ransom": 95,
    "medical emergency surgery required": 85,
    "bail money needed right now": 90,
    "aapko kuch ho gaya hai": 90,
    "hospital mein admit hai": 90,
    "turant paisa chahiye": 85,
    "dadi nani main aapka pota hun": 90,
    "bache ko kuch ho gaya hai": 95,
    "accident mein serious condition": 90,
    "operation ki zarurat hai": 85,
    "blood ki emergency hai": 85,
    "police case mein fansa hai": 90,
    "college ragging mein problem": 80,
    "dost ke saath mushkil mein": 75,
    "paise ki bahut zarurat hai": 80,
    "mama chacha emergency": 85,
    "bua ki tabiyat kharab": 82,
    "nana nani hospital": 88,
    "cousin brother accident": 85,
    "family member arrested": 92,
    "relative needs urgent surgery": 88,
    "grandmother heart attack": 90,
    "uncle needs immediate help": 85,
}

_ROMANCE_SCAM = {
    "i dropped a tear in the ocean": 70,
    "crazy in love with you": 65,
    "different from all other girls boys": 70,
    "god has brought us together": 70,
    "same cultural values": 65,
    "goals perfectly aligned": 65,
    "family doesnt understand our love": 75,
    "keep our relationship secret": 75,
    "working in restricted military area": 80,
    "company policy no personal calls": 75,
    "time difference makes it difficult": 70,
    "phone broken stolen": 75,
    "need money for visa to meet you": 85,
    "stuck at airport need travel funds": 85,
    "customs seized my money": 80,
    "military deployment restricted": 78,
    "peacekeeping mission abroad": 76,
    "oil rig worker": 72,
    "doctor without borders": 74,
    "overseas construction project": 70,
    "diplomatic mission confidential": 82,
    "international business meeting": 68,
    "medical conference emergency": 70,
    "family illness need money": 85,
    "wallet stolen in foreign country": 80,
    "bank account frozen abroad": 82,
    "emergency medical treatment": 78,
    "legal issues need lawyer fees": 85,
    "hotel bill payment problem": 75,
    "flight cancellation stranded": 72,
}

_HINDI_REGIONAL = {
    # Legal threats
    "sarkar ki taraf se": 85,
    "aapko court mein hazir hona hoga": 90,
    "ye ek legal matter hai": 85,
    "immediate action lena padega": 80,
    "aapke khilaaf case file ho gaya": 90,
    "warrant nikla hai aapke naam": 95,
    "police aane wali hai": 90,
    "ghar ki talashi hogi": 85,
    "account freeze ho jayega": 85,
    "property attach kar denge": 85,
    # Officials
    "collector sahab se baat karo": 85,
    "sp sahab ka order hai": 90,
    "judge sahab ne kaha hai": 95,
    "commissioner ka call hai": 90,
    "magistrate ka summon": 90,
    "thana incharge se milna hoga": 85,
    "sarkari kaam hai urgent": 80,
    "government ka faisla": 85,
    "mantri ji ka order": 88,
    "secretary sahab ka message": 85,
    "dm sahab se baat": 87,
    "ias officer calling": 85,
    "ips officer urgent": 88,
    "tehsildar ka notice": 82,
    "patwari se verification": 75,
    "bjp office se call": 70,
    "congress office urgent": 70,
    "aap party worker": 68,
    "election commission notice": 85,
    "returning officer message": 80,
    # Banking and dues
    "bank manager urgent call": 75,
    "loan default case": 85,
    "emi bounce notice": 80,
    "credit card block": 78,
    "account overdraft": 76,
    "cheque bounce case": 85,
    "loan recovery agent": 82,
    "bank fraud detection": 85,
    "suspicious transaction": 80,
    "kyc verification pending": 75,
    "aadhar link mandatory": 72,
    "pan card verification": 70,
    "income tax notice": 85,
    "gst registration issue": 78,
    "service tax pending": 75,
    "property tax notice": 72,
    "electricity bill default": 68,
    "gas connection problem": 65,
    "water bill pending": 62,
    "telephone bill issue": 65,
}

_TELUGU_REGIONAL = {
    # Telugu script
    "మీ ఖాతా మూసివేయబడుతుంది": 85,
    "వెంటనే verify చేయండి": 80,
    "పోలీసులు రావడానికి సిద్ధమవుతున్నారు": 90,
    "అరెస్ట్ వారెంట్ వచ్చింది": 95,
    "చట్టపరమైన చర్య తీసుకుంటాం": 85,
    "బ్యాంక్ ఖాతా బ్లాక్ అవుతుంది": 85,
    "న్యాయస్థానంలో హాజరు కావాలి": 90,
    "సైబర్ క్రైమ్ కేసు రిజిస్టర్ అయింది": 90,
    "ఆధార్ కార్డ్ misuse అయింది": 82,
    "పాన్ కార్డ్ duplicate దొరికింది": 85,
    # Romanized Telugu
    "mee account block avuthundi": 85,
    "police station vellaali": 90,
    "legal case file ayyindi": 85,
    "court lo hazaru kaavaali": 90,
    "warrant vachindi mee meeda": 95,
    "cyber crime police raabothunnaru": 90,
    "bank nundi call chesaaru": 75,
    "money transfer cheyyaali": 80,
    "otp share cheyyandi": 85,
    "verification ki details": 75,
    # NRI targeting
    "software company case": 80,
    "h1b visa problem": 85,
    "us lo arrest warrant": 90,
    "green card application reject": 80,
    "offshore account freeze": 85,
    "tax evasion case filed": 85,
    "foreign remittance issue": 80,
    "rbi foreign exchange violation": 85,
    "it returns filing problem": 78,
    "form 16 discrepancy": 75,
    "tds certificate issue": 72,
    "pf account problem": 70,
    "esi registration issue": 68,
    "visa interview call": 82,
    "embassy verification": 85,
    "consulate urgent message": 80,
    "immigration department": 88,
    "homeland security": 90,
    "customs declaration": 75,
    "airport security alert": 85,
    # Local officials
    "collector garu message": 85,
    "sp garu urgent call": 88,
    "mla garu office": 75,
    "mp garu secretary": 78,
    "cm office nundi": 90,
    "governor office call": 85,
    "ias officer message": 82,
    "ips officer urgent": 85,
    "mandal officer call": 75,
    "village secretary": 68,
    "vro office urgent": 70,
    "vra verification": 65,
    "asha worker message": 60,
    "anganwadi urgent": 58,
    "school headmaster": 65,
    "principal urgent call": 68,
    "college fees issue": 70,
    "hostel fee pending": 68,
    "scholarship problem": 72,
    "fee reimbursement": 70,
}

_HINGLISH_MIXED = {
    "sir aapka computer infected hai": 75,
    "aapko refund mil sakta hai": 75,
    "verification ke liye details chahiye": 80,
    "customer care se call kar rahe": 70,
    "aapka account hack ho gaya": 80,
    "virus remove karna padega": 75,
    "technical support ki zarurat": 70,
    "microsoft se official call": 75,
    "windows license expire ho gaya": 70,
    "security breach detect hua": 80,
    "firewall update karna hai": 70,
    "remote access dena hoga": 85,
    "otp share karo verification ke liye": 85,
    "upi pin batao security check": 90,
    "net banking password confirm karo": 95,
    "credit card details verify": 88,
    "debit card block ho gaya": 82,
    "internet banking suspended": 85,
    "mobile banking issue": 78,
    "paytm account problem": 75,
    "phonepe verification": 72,
    "google pay security": 75,
    "bhim app update": 68,
    "upi transaction failed": 70,
    "digital wallet freeze": 80,
    "crypto wallet hack": 85,
    "trading account issue": 82,
    "demat account problem": 78,
    "mutual fund redemption": 72,
    "insurance claim pending": 75,
}

CATEGORY_PHRASES: MappingProxyType = MappingProxyType({
    ScamCategory.DIGITAL_ARREST: _freeze(_DIGITAL_ARREST),
    ScamCategory.TRAI_TELECOM: _freeze(_TRAI_TELECOM),
    ScamCategory.COURIER_CUSTOMS: _freeze(_COURIER_CUSTOMS),
    ScamCategory.INVESTMENT_FRAUD: _freeze(_INVESTMENT_FRAUD),
    ScamCategory.FAMILY_EMERGENCY: _freeze(_FAMILY_EMERGENCY),
    ScamCategory.ROMANCE_SCAM: _freeze(_ROMANCE_SCAM),
    ScamCategory.HINDI_REGIONAL: _freeze(_HINDI_REGIONAL),
    ScamCategory.TELUGU_REGIONAL: _freeze(_TELUGU_REGIONAL),
    ScamCategory.HINGLISH_MIXED: _freeze(_HINGLISH_MIXED),
})


# ---------------------------------------------------------------------------
# Indicator term lists
# ---------------------------------------------------------------------------

URGENCY_TERMS: tuple[str, ...] = (
    # English
    "immediately", "urgent", "quickly", "emergency", "instant", "right now",
    "within minutes", "before midnight", "today only", "limited time",
    "last chance", "expires soon", "deadline", "time sensitive", "critical",
    "asap", "without delay", "right away", "this instant", "at once",
    # Hindi (romanized)
    "turant", "jaldi", "abhi", "foran", "tatkal", "zaruri", "aaj hi",
    "do ghante mein", "der mat karo", "time nahi hai", "is waqt",
    "isi samay",
    # Telugu
    "వెంటనే", "త్వరగా", "ఇప్పుడే", "అత్యవసరం", "immediatelyga", "jaldiga",
    "emergency lo", "time ledu", "twaraga cheyyandi", "ventane cheyandi",
    # Mixed
    "urgent hai", "immediate action", "emergency mein", "turant karo",
    "emergency call", "urgent matter",
)

AUTHORITY_TERMS: tuple[str, ...] = (
    # Law enforcement and agencies
    "police", "cbi", "ncb", "enforcement directorate", "income tax",
    "customs", "rbi", "sebi", "telecom regulatory", "court", "judge",
    "magistrate", "collector", "commissioner", "inspector",
    "superintendent", "constable", "circle officer",
    # Hindi
    "पुलिस", "न्यायाधीश", "कलेक्टर", "आयुक्त", "थाना", "कोर्ट", "सरकार",
    "अफसर", "मजिस्ट्रेट", "न्यायालय",
    # Telugu
    "పోలీసు", "న్యాయమూర్తి", "కలెక్టర్", "కమిషనర్", "ప్రభుత్వం", "అధికారి",
    "కోర్టు", "న్యాయస్థానం",
    # Mixed / romanized
    "officer sahab", "sarkar", "government", "adhikari", "dy sp",
    "crime branch", "special branch", "vigilance", "anti corruption",
    "enforcement",
)

FINANCIAL_RISK_TERMS: tuple[str, ...] = (
    # Credentials and transfers
    "money transfer", "bank details", "account number", "ifsc code",
    "upi pin", "otp", "cvv", "atm pin", "net banking password",
    "debit card number", "credit card details", "expiry date",
    "security code", "mpin", "transaction password",
    # Hindi
    "paisa bhejo", "account details do", "pin batao", "otp share karo",
    "bank se paise", "transfer karo", "paise ki zarurat", "amount send",
    "rupaye bhejo",
    # Payment apps
    "phonepe", "paytm", "google pay", "bhim upi", "amazon pay", "mobikwik",
    "freecharge", "airtel money",
    # Crypto
    "bitcoin", "crypto", "wallet address", "private key", "metamask",
    "binance", "coinbase", "usdt", "ethereum", "dogecoin", "blockchain",
    # Investment bait
    "guaranteed returns", "double money", "risk free", "insider information",
    "sure shot profit", "limited offer", "high returns", "quick money",
    "easy profit",
)

TECH_SUPPORT_TERMS: tuple[str, ...] = (
    "microsoft", "windows", "virus", "malware", "firewall", "hacker",
    "ip address", "remote access", "teamviewer", "anydesk", "computer slow",
    "pop up", "license expired", "technical support", "customer care",
    "antivirus", "trojan", "spyware", "ransomware", "phishing",
    "suspicious activity", "unauthorized access", "system compromise",
    "data breach", "identity theft",
)

INDICATOR_TERMS: MappingProxyType = MappingProxyType({
    IndicatorKind.URGENCY: URGENCY_TERMS,
    IndicatorKind.AUTHORITY: AUTHORITY_TERMS,
    IndicatorKind.FINANCIAL_RISK: FINANCIAL_RISK_TERMS,
    IndicatorKind.TECH_SUPPORT: TECH_SUPPORT_TERMS,
})

INDICATOR_BONUS: MappingProxyType = MappingProxyType({
    IndicatorKind.URGENCY: 15,
    IndicatorKind.AUTHORITY: 20,
    IndicatorKind.FINANCIAL_RISK: 25,
    IndicatorKind.TECH_SUPPORT: 15,
})


def pattern_count() -> int:
    """Total number of category phrases across all dictionaries."""
    return sum(len(phrases) for phrases in CATEGORY_PHRASES.values())
