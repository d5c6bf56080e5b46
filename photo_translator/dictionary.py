"""Offline word tables used when both translation services are unreachable."""

from __future__ import annotations

from typing import Dict

FALLBACK_DICTIONARY: Dict[str, Dict[str, str]] = {
    "hi": {
        "hello": "नमस्ते",
        "world": "दुनिया",
        "good": "अच्छा",
        "morning": "सुबह",
        "evening": "शाम",
        "night": "रात",
        "thank": "धन्यवाद",
        "you": "आप",
        "welcome": "स्वागत",
        "please": "कृपया",
        "sorry": "माफ़ करें",
        "yes": "हाँ",
        "no": "नहीं",
        "help": "मदद",
        "food": "खाना",
        "water": "पानी",
        "home": "घर",
        "work": "काम",
        "school": "स्कूल",
        "love": "प्यार",
        "family": "परिवार",
        "friend": "दोस्त",
        "time": "समय",
        "day": "दिन",
        "today": "आज",
        "tomorrow": "कल",
        "yesterday": "कल",
        "here": "यहाँ",
        "there": "वहाँ",
        "where": "कहाँ",
        "when": "कब",
        "why": "क्यों",
        "how": "कैसे",
        "what": "क्या",
        "who": "कौन",
        "which": "कौन सा",
        "dreams": "सपने",
        "success": "सफलता",
        "life": "जीवन",
        "motivation": "प्रेरणा",
        "inspiration": "प्रेरणा",
        "achieve": "हासिल करना",
        "goal": "लक्ष्य",
        "future": "भविष्य",
        "hope": "आशा",
        "believe": "विश्वास",
        "strong": "मजबूत",
        "courage": "साहस",
        "never": "कभी नहीं",
        "give": "देना",
        "up": "ऊपर",
        "always": "हमेशा",
        "try": "कोशिश",
        "hard": "कठिन",
        "effort": "प्रयास",
        "dedication": "समर्पण",
    },
    "es": {
        "hello": "hola",
        "world": "mundo",
        "good": "bueno",
        "morning": "mañana",
        "evening": "tarde",
        "night": "noche",
        "thank": "gracias",
        "you": "tú",
        "welcome": "bienvenido",
        "please": "por favor",
        "sorry": "lo siento",
        "yes": "sí",
        "no": "no",
        "help": "ayuda",
        "food": "comida",
        "water": "agua",
        "home": "casa",
        "work": "trabajo",
        "school": "escuela",
        "love": "amor",
        "family": "familia",
        "friend": "amigo",
        "time": "tiempo",
        "day": "día",
        "today": "hoy",
        "tomorrow": "mañana",
        "yesterday": "ayer",
        "dreams": "sueños",
        "success": "éxito",
        "life": "vida",
        "motivation": "motivación",
        "achieve": "lograr",
        "goal": "meta",
        "future": "futuro",
        "hope": "esperanza",
        "believe": "creer",
        "strong": "fuerte",
        "courage": "coraje",
        "never": "nunca",
        "give": "dar",
        "up": "arriba",
        "always": "siempre",
        "try": "intentar",
        "hard": "difícil",
        "effort": "esfuerzo",
    },
    "fr": {
        "hello": "bonjour",
        "world": "monde",
        "good": "bon",
        "morning": "matin",
        "evening": "soir",
        "night": "nuit",
        "thank": "merci",
        "you": "vous",
        "welcome": "bienvenue",
        "please": "s'il vous plaît",
        "sorry": "désolé",
        "yes": "oui",
        "no": "non",
        "help": "aide",
        "food": "nourriture",
        "water": "eau",
        "home": "maison",
        "work": "travail",
        "school": "école",
        "love": "amour",
        "family": "famille",
        "friend": "ami",
        "time": "temps",
        "day": "jour",
        "today": "aujourd'hui",
        "tomorrow": "demain",
        "yesterday": "hier",
        "dreams": "rêves",
        "success": "succès",
        "life": "vie",
        "motivation": "motivation",
        "achieve": "atteindre",
        "goal": "objectif",
        "future": "avenir",
        "hope": "espoir",
        "believe": "croire",
        "strong": "fort",
        "courage": "courage",
        "never": "jamais",
        "give": "donner",
        "up": "haut",
        "always": "toujours",
        "try": "essayer",
        "hard": "difficile",
        "effort": "effort",
    },
}


__all__ = ["FALLBACK_DICTIONARY"]
