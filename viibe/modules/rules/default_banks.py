from __future__ import annotations

GENERIC_BANK_KEY = "_generic"

DEFAULT_LINE_BANKS: dict[str, tuple[str, ...]] = {
    "celebrations": (
        "Some days deserve a louder soundtrack and this is clearly one of them!",
        "Raise whatever you are holding because this moment earned a proper toast.",
        "Who knew a single afternoon could hold this much good news and noise?",
        "Mark the calendar and warn the neighbors, the good times have officially arrived.",
        "Nobody planned for this much joy but here we are handling it like pros.",
        "Tonight the snacks are free, the playlist is loud and the mood is undefeated.",
    ),
    "daily-life": (
        "Coffee is brewing, the inbox is screaming and somehow we are still winning today.",
        "Why does the smoke alarm only test itself at three in the morning?",
        "The laundry pile has achieved sentience and now demands a seat at the table.",
        "Small wins count too, like finding matching socks on the very first try!",
        "Every grocery run starts with a list and ends with seven kinds of crackers.",
        "Adulting is mostly remembering where you put the scissors five minutes ago.",
    ),
    "sports": (
        "Nothing builds character quite like yelling advice at a screen for three hours.",
        "The snacks are ready, the jerseys are on and the couch is fully warmed up!",
        "Why do the best plays always happen the moment you step out for a drink?",
        "Practice makes progress, and progress makes for a very proud sideline crowd.",
        "Sweat, grit and a questionable pregame playlist got us exactly where we are.",
        "Some people meditate, others watch the final two minutes with their eyes closed.",
    ),
    "pop-culture": (
        "The group chat has opinions about the finale and none of them are calm!",
        "Who else rewatched the whole series just to catch one tiny background detail?",
        "Spoiler alert, the popcorn was gone before the opening credits even finished.",
        "Every trailer promises the movie of the decade and we believe it every time.",
        "Somewhere a playlist is shuffling our favorite song just to test our loyalty.",
        "The plot twist was obvious, but we gasped anyway because that is the tradition.",
    ),
    "jokes": (
        "The thermostat and I have agreed to disagree for the rest of the season.",
        "Why did the robot vacuum quit? It was tired of being pushed around all day!",
        "Parallel parking is a group activity whether the neighbors volunteer or not.",
        "My houseplant looks at me like I forgot something important, and it is right.",
        "The weather app said sunny, so naturally the umbrella stayed home alone again.",
        "Self-checkout asked for assistance before I even touched a single item today.",
    ),
    GENERIC_BANK_KEY: (
        "Here is to the moments that make a perfectly ordinary day feel a little legendary.",
        "Some things are hard to explain but easy to enjoy, and this is one of them!",
        "Who needs a reason to smile when the day keeps handing out free material?",
        "Good company, good timing and a story we will be retelling for years to come.",
        "Life keeps it interesting, and honestly we would not want it any other way.",
        "Take a bow, because this moment just made the highlight reel without trying.",
    ),
}


def lines_for_category(category: str) -> tuple[str, ...]:
    key = str(category or "").strip().lower()
    bank = DEFAULT_LINE_BANKS.get(key)
    if bank:
        return bank
    return DEFAULT_LINE_BANKS[GENERIC_BANK_KEY]
