"""
Bundled starting data: the original weekly schedule of every hospital, the
default price table and the shift-period time tables.
"""

from typing import Dict, List


def _shift(shift_id: str, name: str, days: Dict[int, list] = None) -> dict:
    """days: {day_index: [(doctor, time, extra_fields), ...]}"""
    schedule = []
    for day_index, entries in sorted((days or {}).items()):
        assignments = []
        for entry in entries:
            a = {"name": entry[0]}
            if len(entry) > 1 and entry[1]:
                a["time"] = entry[1]
            if len(entry) > 2:
                a.update(entry[2])
            assignments.append(a)
        schedule.append({"day_index": day_index, "assignments": assignments})
    return {"id": shift_id, "name": name, "schedule": schedule}


def _week(doctors: List[str], time: str, start: int = 0) -> Dict[int, list]:
    return {start + i: [(d, time)] for i, d in enumerate(doctors) if d}


# Legacy layout: each hospital with its shifts and a Monday-first weekly schedule.
SCHEDULE_DATA: List[dict] = [
    {
        "id": "porto-feliz", "name": "Porto Feliz", "theme": "green",
        "shifts": [
            _shift("pf-diurno", "Diurno", _week([
                "Marcos André", "Ricardo Cristóvão", "Pedro Maich", "Mariana Inácio",
                "Mariana Inácio", "Rafael Camerlengo", "Rafael Camerlengo"], "07-19h")),
            _shift("pf-extra-1", "Anestesista Extra", _week([
                "Thiago Dalleprane", "Marcos André", "Marco Antonio e Cia",
                "Iuri Soares", "Leonardo Martins"], "07-19h")),
            _shift("pf-extra-2", "Anestesista Extra", {1: [("Iuri Soares", "13-19h")]}),
            _shift("pf-extra-3", "Anestesista Extra"),
            _shift("pf-noturno", "Noturno", {
                **_week(["Marcos André", "Ricardo Cristóvão", "Pedro Maich",
                         "Mariana Inácio", "Marcos André", "Rafael Camerlengo"], "19-07h"),
                6: [("Getúlio André", "19-07h", {"is_bold": True, "is_red": True})],
            }),
        ],
    },
    {
        "id": "boituva", "name": "Boituva", "theme": "purple",
        "shifts": [
            _shift("bt-diurno", "Diurno", {
                **_week(["Hernando Mauro", "Katiusa de Abreu", "Katiusa de Abreu",
                         "Ellen Cristine", "Marcos André"], "07-19h"),
                5: [("Ana Beatriz", "07-19h", {"sub_name": "Camerlengo"})],
                6: [("Anne Karoline", "07-19h", {"sub_name": "Mendes"})],
            }),
            _shift("bt-noturno", "Noturno", {
                **_week(["Henrique da Silva", "Katiusa de Abreu", "Henrique da Silva",
                         "Ellen Cristine"], "19-07h"),
                4: [("Ana Beatriz", "19-07h", {"sub_name": "Camerlengo"})],
                5: [("Ana Beatriz", "19-07h", {"sub_name": "Camerlengo"})],
                6: [("Anne Karoline", "19-07h", {"sub_name": "Mendes"})],
            }),
        ],
    },
    {
        "id": "votorantim", "name": "Votorantim", "theme": "slate",
        "shifts": [
            _shift("vt-diurno", "Diurno", {
                0: [("Leonardo Martins", "07-19h")],
                1: [("Andrea Cardoso", "07-13h")],
                2: [("Thiago Dalleprane", "07-19h")],
                3: [("Andrea Cardoso", "07-19h")],
                4: [("Andrea Cardoso", "07-13h")],
                5: [("Thiago Dalleprane", "07-19h")],
                6: [("Thiago Dalleprane", "07-19h")],
            }),
            _shift("vt-2nd", "2 Anestesista", {
                1: [("Thiago Dalleprane", "13-19h")],
                4: [("Thays Donaire", "13-19h")],
            }),
            _shift("vt-noturno", "Noturno", _week([
                "Leonardo Martins", "Thiago Dalleprane", "Thiago Dalleprane", "Andrea Cardoso",
                "Thiago Dalleprane", "Thiago Dalleprane", "Thiago Dalleprane"], "19-07h")),
        ],
    },
    {
        "id": "santa-lucinda", "name": "Santa Lucinda", "theme": "blue",
        "shifts": [
            _shift("sl-manha", "Manhã", _week([
                "Thays Donaire", "Leonardo Martins", "Andrea Cardoso",
                "Leonardo Martins", "Thiago Dalleprane"], "7-19h")),
            _shift("sl-tarde", "Tarde", {4: [("Andrea Cardoso", "14-19h")]}),
            _shift("sl-ambulatorio", "Ambulatório"),
        ],
    },
    {
        "id": "salto", "name": "Salto", "theme": "orange",
        "shifts": [
            _shift("sa-manha", "Manhã", {
                1: [("Thiago Dalleprane", "07-13h")],
                2: [("Leonardo Martins", "07-13h")],
                3: [("Thiago Dalleprane", "07-13h")],
                5: [("Leonardo Martins", "07-19h")],
            }),
            _shift("sa-tarde", "Tarde", {3: [("Thays Donaire", "13-19h")]}),
        ],
    },
    {
        "id": "ame", "name": "Ame", "theme": "pink",
        "shifts": [
            _shift("ame-manha", "Manhã", {
                0: [("Iuri Soares", "7-13h")],
                3: [("Juliana Bevilacqua", "7-13h")],
                4: [("Lucas Dohler", "7-13h")],
            }),
            _shift("ame-tarde", "Tarde", {1: [("Lucas Dohler", "13-19h")]}),
        ],
    },
    {
        "id": "medvitalis", "name": "Medvitalis", "theme": "indigo",
        "shifts": [
            _shift("mv-manha", "Manhã", {2: [("Iuri Soares", "07:30h")]}),
            _shift("mv-tarde", "Tarde"),
        ],
    },
    {
        "id": "fenix", "name": "Fênix", "theme": "sky",
        "shifts": [_shift("fx-manha", "Manhã"), _shift("fx-tarde", "Tarde")],
    },
    {
        "id": "top-imagens", "name": "TOP Imagens", "theme": "yellow",
        "shifts": [_shift("ti-manha", "Manhã"), _shift("ti-tarde", "Tarde")],
    },
    {
        "id": "particular", "name": "Particular", "theme": "neutral",
        "shifts": [_shift("pt-manha", "Manhã"), _shift("pt-tarde", "Tarde")],
    },
    {
        "id": "agenda-iuri", "name": "Agenda Dr Iuri", "theme": "emerald",
        "shifts": [
            _shift("ai-manha", "Manhã", {
                0: [("Ame", "7-13h")],
                2: [("Medvitalis 4 faco", None)],
                3: [("Porto Feliz", "7-19h")],
            }),
            _shift("ai-tarde", "Tarde", {
                0: [("Itu", "13-19h")],
                1: [("Porto Feliz", "13-19h")],
            }),
        ],
    },
]

# Hours per shift period (lower-case period name)
SHIFT_HOURS_CONFIG = {
    "manhã": 6,
    "tarde": 6,
    "diurno": 12,
    "noturno": 12,
    "24h": 24,
    "noturno c/ acionamento": 12,
    "24h c/ acionamento": 24,
    "domingo 24h": 24,
}

SHIFT_DISPLAY_TIMES = {
    "manhã": "07-13h",
    "tarde": "13-19h",
    "diurno": "07-19h",
    "noturno": "19-07h",
    "24h": "07-07h",
    "noturno c/ acionamento": "19-07h",
    "24h c/ acionamento": "07-07h",
    "domingo 24h": "07-07h",
    "manhã sábado - salto": "07-13h",
    "diurno c/ acionamento": "07-19h",
}

# [entry1, exit1, entry2, exit2, duration label]
SHIFT_TIMES_CONFIG = {
    "manhã": ["07:00", "13:00", "", "", "06 horas"],
    "tarde": ["", "", "13:00", "19:00", "06 horas"],
    "diurno": ["07:00", "19:00", "", "", "12 horas"],
    "noturno": ["19:00", "07:00", "", "", "12 horas"],
    "24h": ["07:00", "07:00", "", "", "24 horas"],
    "noturno c/ acionamento": ["19:00", "07:00", "", "", "12 horas"],
    "24h c/ acionamento": ["07:00", "07:00", "", "", "24 horas"],
    "domingo 24h": ["07:00", "07:00", "", "", "24 horas"],
    "manhã sábado - salto": ["07:00", "13:00", "", "", "06 horas"],
    "diurno c/ acionamento": ["", "", "13:00", "19:00", "06 horas"],
}

# (hospital, shift name, value, is_dif)
_RAW_RULES = [
    ("Porto Feliz", "Manhã", 950, False),
    ("Porto Feliz", "Tarde", 950, False),
    ("Porto Feliz", "Diurno", 1900, False),
    ("Porto Feliz", "Noturno", 1900, False),
    ("Porto Feliz", "24h", 3800, False),
    ("Porto Feliz", "Manhã", 1000, True),
    ("Porto Feliz", "Tarde", 1000, True),
    ("Porto Feliz", "Diurno", 2000, True),
    ("Porto Feliz", "Noturno", 2000, True),
    ("Porto Feliz", "24h", 4000, True),

    ("Votorantim", "Manhã", 950, False),
    ("Votorantim", "Tarde", 950, False),
    ("Votorantim", "Diurno", 1900, False),
    ("Votorantim", "Noturno", 700, False),
    ("Votorantim", "24h", 2600, False),
    ("Votorantim", "Noturno c/ Acionamento", 1300, False),
    ("Votorantim", "24h c/ Acionamento", 3200, False),
    ("Votorantim", "Domingo 24h", 2000, False),
    ("Votorantim", "Diurno c/ Acionamento", 1000, False),
    ("Votorantim", "Sobreaviso Diurno", 500, False),
    ("Votorantim", "Manhã", 1000, True),
    ("Votorantim", "Tarde", 1000, True),
    ("Votorantim", "Diurno", 2000, True),
    ("Votorantim", "24h", 2700, True),
    ("Votorantim", "Noturno", 700, True),
    ("Votorantim", "Noturno c/ Acionamento", 1300, True),
    ("Votorantim", "24h c/ Acionamento", 3300, True),
    ("Votorantim", "Domingo 24h", 2000, True),
    ("Votorantim", "Diurno c/ Acionamento", 1000, True),
    ("Votorantim", "Sobreaviso Diurno", 500, True),

    ("Boituva", "Manhã", 950, False),
    ("Boituva", "Tarde", 950, False),
    ("Boituva", "Diurno", 1900, False),
    ("Boituva", "Noturno", 1800, False),
    ("Boituva", "24h", 3700, False),
    ("Boituva", "Manhã", 1000, True),
    ("Boituva", "Tarde", 1000, True),
    ("Boituva", "Diurno", 2000, True),
    ("Boituva", "Noturno", 2000, True),
    ("Boituva", "24h", 4000, True),

    ("Salto", "Manhã", 1300, False),
    ("Salto", "Tarde", 1300, False),
    ("Salto", "Diurno", 2600, False),
    ("Salto", "Manhã Sábado - Salto", 2300, False),
    ("Salto", "Manhã", 1300, True),
    ("Salto", "Tarde", 1300, True),
    ("Salto", "Diurno", 2600, True),
    ("Salto", "Manhã Sábado - Salto", 2300, True),

    ("Santa Lucinda", "Manhã", 1000, False),
    ("Santa Lucinda", "Tarde", 1000, False),
    ("Santa Lucinda", "Diurno", 2000, False),
    ("Santa Lucinda", "Manhã", 1000, True),
    ("Santa Lucinda", "Tarde", 1000, True),
    ("Santa Lucinda", "Diurno", 2000, True),

    ("Ame", "Tarde", 1000, False),
    ("Ame", "Manhã", 1000, False),
    ("Ame", "Diurno", 2000, False),
    ("Ame", "Tarde", 1000, True),
    ("Ame", "Manhã", 1000, True),

    ("Registro", "Manhã", 1200, False),
    ("Registro", "Tarde", 1200, False),
    ("Registro", "Diurno", 2000, False),
    ("Registro", "Noturno", 1000, False),
    ("Registro", "24h", 3000, False),
    ("Registro", "Domingo 24h", 2000, False),
    ("Registro", "Manhã", 1200, True),
    ("Registro", "Tarde", 1200, True),
    ("Registro", "Diurno", 2000, True),
    ("Registro", "Noturno", 1000, True),
    ("Registro", "24h", 3000, True),
    ("Registro", "Domingo 24h", 2000, True),
]


def default_financial_rules() -> List[dict]:
    return [
        {
            "id": f"rule-default-{i}",
            "hospital_name": hospital,
            "shift_name": shift_name,
            "value": value,
            "is_dif": is_dif,
        }
        for i, (hospital, shift_name, value, is_dif) in enumerate(_RAW_RULES)
    ]
