"""Simple two-language (en/fr) translation helper for UI labels.

Dates are always formatted en-US; only interface strings are translated.
"""

_STRINGS: dict[str, dict[str, str]] = {
    "page_title": {
        "en": "Solar Symmetry",
        "fr": "Symétrie solaire",
    },
    "view_symmetry": {
        "en": "Symmetry",
        "fr": "Symétrie",
    },
    "view_cities": {
        "en": "Compare cities",
        "fr": "Comparer deux villes",
    },
    "label_location": {
        "en": "Location",
        "fr": "Lieu",
    },
    "label_city1": {
        "en": "City 1",
        "fr": "Ville 1",
    },
    "label_city2": {
        "en": "City 2",
        "fr": "Ville 2",
    },
    "label_results": {
        "en": "Matches",
        "fr": "Résultats",
    },
    "btn_search": {
        "en": "Search",
        "fr": "Rechercher",
    },
    "btn_clear": {
        "en": "Clear",
        "fr": "Effacer",
    },
    "btn_my_location": {
        "en": "Use my location",
        "fr": "Ma position",
    },
    "btn_prev": {
        "en": "← Previous",
        "fr": "← Précédent",
    },
    "btn_next": {
        "en": "Next →",
        "fr": "Suivant →",
    },
    "toggle_golden_hour": {
        "en": "Golden hour",
        "fr": "Heure dorée",
    },
    "col_current": {
        "en": "This month",
        "fr": "Ce mois-ci",
    },
    "col_mirrored": {
        "en": "Mirror dates",
        "fr": "Dates miroir",
    },
    "time_dawn": {
        "en": "Dawn",
        "fr": "Aube",
    },
    "time_sunrise": {
        "en": "Sunrise",
        "fr": "Lever",
    },
    "time_sunset": {
        "en": "Sunset",
        "fr": "Coucher",
    },
    "time_dusk": {
        "en": "Dusk",
        "fr": "Crépuscule",
    },
    "time_golden_am": {
        "en": "Golden AM",
        "fr": "Heure dorée (matin)",
    },
    "time_golden_pm": {
        "en": "Golden PM",
        "fr": "Heure dorée (soir)",
    },
    "cell_loading": {
        "en": "Loading…",
        "fr": "Chargement…",
    },
    "cell_unavailable": {
        "en": "Unavailable",
        "fr": "Indisponible",
    },
    "placeholder_symmetry": {
        "en": "Choose a location to see mirror dates",
        "fr": "Choisissez un lieu pour voir les dates miroir",
    },
    "placeholder_cities": {
        "en": "Choose two cities to compare",
        "fr": "Choisissez deux villes à comparer",
    },
    "no_results": {
        "en": "No places found.",
        "fr": "Aucun lieu trouvé.",
    },
    "error_search": {
        "en": "Location search failed. Try again in a moment. ({error})",
        "fr": "La recherche a échoué. Réessayez dans un instant. ({error})",
    },
    "error_partial": {
        "en": "Some twilight times could not be loaded.",
        "fr": "Certaines heures n'ont pas pu être chargées.",
    },
    "law_title_now": {
        "en": "Light After Work",
        "fr": "Lumière après le travail",
    },
    "law_message_now": {
        "en": "Sunset today at {sunset}",
        "fr": "Coucher du soleil aujourd'hui à {sunset}",
    },
    "law_countdown_now": {
        "en": "Enjoy the daylight",
        "fr": "Profitez de la lumière",
    },
    "law_title_later": {
        "en": "Light Returns After Work",
        "fr": "Le retour de la lumière après le travail",
    },
    "law_message_later": {
        "en": "Sunset will be after 5pm on {day}",
        "fr": "Le soleil se couchera après 17 h le {day}",
    },
    "law_countdown_later": {
        "en": "{days} days",
        "fr": "{days} jours",
    },
}


def t(key: str, lang: str) -> str:
    """Return the translated string for key in lang.

    Falls back to 'en', then to the key itself if not found.
    """
    entry = _STRINGS.get(key)
    if entry is None:
        return key
    return entry.get(lang) or entry.get("en") or key
