"""
Sender category address patterns.

Checked in order against the lower-cased address; the first category with a
matching pattern wins. Named organisations come before generic families so
that e.g. a CHA whose domain contains "cargo" is not caught by a broader rule.
"""

import re

from shipment_intel.models.enums import SenderCategory

S = SenderCategory


def _patterns(*sources: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(source, re.IGNORECASE) for source in sources)


SENDER_CATEGORY_PATTERNS: tuple[tuple[SenderCategory, tuple[re.Pattern, ...]], ...] = (
    (S.CARRIER, _patterns(
        r"maersk",
        r"hapag|hlag",
        r"cma.?cgm",
        r"cosco|coscon",
        r"one-line|ocean.?network",
        r"evergreen",
        r"\bmsc\b|mediterranean.?shipping",
        r"yang.?ming|\byml\b",
        r"\bzim\b",
        r"oocl",
        r"\bapl\b",
        r"pabordar|abordar",
    )),
    (S.INTERNAL, _patterns(
        r"@intoglo\.com$",
        r"@intoglo\.in$",
    )),
    (S.PLATFORM, _patterns(
        r"cbp\.dhs\.gov",
        r"cbsa|auth\.canada\.ca",
        r"fffai\.org",
        r"odexservices",
        r"shipcube",
        r"scimplify",
        r"softlinkglobal",
    )),
    (S.CUSTOMS_BROKER_US, _patterns(
        r"portside",
        r"chbentries|artemus",
        r"jmdcustoms",
        r"sssusainc",
        r"cometclearing",
    )),
    (S.CHA_INDIA, _patterns(
        r"anscargo",
        r"aarishkalogistics",
        r"arglltd",
        r"highwayroop",
        r"klfintl",
        r"tulipshipping",
        r"clairvoince",
        r"ishtcorp",
        r"globaltrade",
        r"tulsilogistics",
        r"vccfa",
        r"triwaystransport",
        r"jasliner",
        r"arihantshipping",
        r"transnautic|trnautic",
        r"cometshipping\.in",
        r"rajvilogistics",
        r"ajsl\.in",
        r"bbcargo",
    )),
    (S.TRUCKER, _patterns(
        r"carmeltransport",
        r"meiborg",
        r"champion.?logistics",
    )),
    (S.WAREHOUSE, _patterns(
        r"warehouse",
        r"\bcfs\b",
    )),
    (S.PARTNER, _patterns(
        r"transjetcargo",
        r"\bsmil\b",
        r"go2wwl",
    )),
    (S.SHIPPER, _patterns(
        r"ideafasteners",
        r"matangiindustries",
        r"sonacomstar",
        r"northpole-industries",
        r"starpipeproducts",
        r"pearlglobal",
        r"grasperglobal",
        r"tradepartners\.us",
        r"kirstutt",
        r"crafttrends",
        r"katyaniexport",
        r"raajtubes",
        r"srsinternational",
        r"silverplastomers",
        r"sbenterprises",
        r"ansabrakesgroup",
        r"aryanint",
        r"panoramicsourcing",
        r"gfsolutions\.in",
        r"eikowa",
        r"globalautotec",
        r"cetusengineering",
        r"denovoinnovations",
    )),
    (S.CONSIGNEE, _patterns(
        r"unimotion",
        r"blastr?eso",
        r"gravityconcepts",
    )),
)
