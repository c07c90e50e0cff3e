from __future__ import annotations

import random
from typing import Iterable

from .career import base_overall_for, player_value
from .config import DEFAULT_PLAYER_WAGE
from .models import Club, Division, Player, TournamentFormat, WorldData
from .names import NameGenerator
from .rules import GameRules
from .table import TableRow

DIVISIONS: tuple[tuple[str, str, str, int, str], ...] = (
    ("BRA_SERIE_A", "Brasileirao Serie A", "BRA", 1, "CONMEBOL"),
    ("BRA_SERIE_B", "Brasileirao Serie B", "BRA", 2, "CONMEBOL"),
    ("ARG_PRIMERA", "Liga Profesional", "ARG", 1, "CONMEBOL"),
    ("ENG_PREMIER", "Premier League", "ENG", 1, "UEFA"),
    ("ESP_LALIGA", "LaLiga", "ESP", 1, "UEFA"),
    ("ITA_SERIE_A", "Serie A", "ITA", 1, "UEFA"),
    ("GER_BUNDES", "Bundesliga", "GER", 1, "UEFA"),
    ("FRA_LIGUE_1", "Ligue 1", "FRA", 1, "UEFA"),
)

# (club id, name, short name, overall)
CLUBS: dict[str, list[tuple[str, str, str, float]]] = {
    "BRA_SERIE_A": [
        ("FLA", "Flamengo", "FLA", 79), ("PAL", "Palmeiras", "PAL", 79), ("ATM", "Atletico Mineiro", "CAM", 76),
        ("BOT", "Botafogo", "BOT", 76), ("SAO", "Sao Paulo", "SAO", 75), ("FLU", "Fluminense", "FLU", 74),
        ("INT", "Internacional", "INT", 74), ("GRE", "Gremio", "GRE", 73), ("COR", "Corinthians", "COR", 73),
        ("CRU", "Cruzeiro", "CRU", 73), ("BAH", "Bahia", "BAH", 72), ("VAS", "Vasco da Gama", "VAS", 71),
        ("FOR", "Fortaleza", "FOR", 71), ("BGT", "Bragantino", "RBB", 71), ("ATP", "Athletico Paranaense", "CAP", 70),
        ("JUV", "Juventude", "JUV", 67), ("VIT", "Vitoria", "VIT", 67), ("CRI", "Criciuma", "CRI", 66),
        ("CUI", "Cuiaba", "CUI", 66), ("ACG", "Atletico Goianiense", "ACG", 65),
    ],
    "BRA_SERIE_B": [
        ("SAN", "Santos", "SAN", 69), ("SPT", "Sport Recife", "SPT", 67), ("CEA", "Ceara", "CEA", 67),
        ("MIR", "Mirassol", "MIR", 66), ("NOV", "Novorizontino", "NOV", 65), ("GOI", "Goias", "GOI", 65),
        ("AME", "America Mineiro", "AME", 65), ("CFC", "Coritiba", "CFC", 64), ("VNO", "Vila Nova", "VNO", 63),
        ("OPE", "Operario", "OPE", 62), ("AVA", "Avai", "AVA", 62), ("PAY", "Paysandu", "PAY", 62),
        ("CHA", "Chapecoense", "CHA", 61), ("PON", "Ponte Preta", "PON", 61), ("CRB", "CRB", "CRB", 61),
        ("BFS", "Botafogo-SP", "BFS", 60), ("ITU", "Ituano", "ITU", 60), ("AMZ", "Amazonas", "AMZ", 59),
        ("BRU", "Brusque", "BRU", 59), ("GUA", "Guarani", "GUA", 59),
    ],
    "ARG_PRIMERA": [
        ("RIV", "River Plate", "RIV", 77), ("BOC", "Boca Juniors", "BOC", 76), ("RAC", "Racing Club", "RAC", 74),
        ("VEL", "Velez Sarsfield", "VEL", 72), ("TAL", "Talleres", "TAL", 72), ("EST", "Estudiantes", "EST", 72),
        ("IND", "Independiente", "IND", 71), ("SLO", "San Lorenzo", "SLO", 70), ("ARJ", "Argentinos Juniors", "ARJ", 70),
        ("HUR", "Huracan", "HUR", 69), ("LAN", "Lanus", "LAN", 69), ("DYJ", "Defensa y Justicia", "DYJ", 68),
        ("ROS", "Rosario Central", "ROS", 68), ("NOB", "Newell's Old Boys", "NOB", 67), ("GIM", "Gimnasia", "GIM", 66),
        ("BEL", "Belgrano", "BEL", 66),
    ],
    "ENG_PREMIER": [
        ("MCI", "Manchester City", "MCI", 86), ("ARS", "Arsenal", "ARS", 85), ("LIV", "Liverpool", "LIV", 85),
        ("CHE", "Chelsea", "CHE", 81), ("TOT", "Tottenham Hotspur", "TOT", 80), ("MUN", "Manchester United", "MUN", 80),
        ("NEW", "Newcastle United", "NEW", 80), ("AVL", "Aston Villa", "AVL", 79), ("BHA", "Brighton", "BHA", 77),
        ("WHU", "West Ham United", "WHU", 77), ("CRY", "Crystal Palace", "CRY", 75), ("FUL", "Fulham", "FUL", 75),
        ("BOU", "Bournemouth", "BOU", 75), ("WOL", "Wolverhampton", "WOL", 75), ("BRE", "Brentford", "BRE", 75),
        ("EVE", "Everton", "EVE", 74), ("NFO", "Nottingham Forest", "NFO", 74), ("LEI", "Leicester City", "LEI", 72),
        ("IPS", "Ipswich Town", "IPS", 71), ("SOU", "Southampton", "SOU", 71),
    ],
    "ESP_LALIGA": [
        ("RMA", "Real Madrid", "RMA", 86), ("BAR", "Barcelona", "BAR", 84), ("ATL", "Atletico Madrid", "ATM", 82),
        ("GIR", "Girona", "GIR", 78), ("ATH", "Athletic Club", "ATH", 78), ("RSO", "Real Sociedad", "RSO", 77),
        ("BET", "Real Betis", "BET", 77), ("VIL", "Villarreal", "VIL", 77), ("VAL", "Valencia", "VAL", 75),
        ("SEV", "Sevilla", "SEV", 75), ("OSA", "Osasuna", "OSA", 74), ("CEL", "Celta Vigo", "CEL", 74),
        ("GET", "Getafe", "GET", 73), ("MLL", "Mallorca", "MLL", 73), ("RAY", "Rayo Vallecano", "RAY", 73),
        ("ALA", "Alaves", "ALA", 72), ("LPA", "Las Palmas", "LPA", 71), ("ESP", "Espanyol", "ESP", 71),
        ("LEG", "Leganes", "LEG", 70), ("VLL", "Real Valladolid", "VLL", 70),
    ],
    "ITA_SERIE_A": [
        ("INTM", "Inter", "INT", 84), ("MIL", "Milan", "MIL", 81), ("JUVT", "Juventus", "JUV", 81),
        ("ATA", "Atalanta", "ATA", 80), ("NAP", "Napoli", "NAP", 80), ("ROM", "Roma", "ROM", 79),
        ("LAZ", "Lazio", "LAZ", 78), ("FIO", "Fiorentina", "FIO", 77), ("BOL", "Bologna", "BOL", 77),
        ("TOR", "Torino", "TOR", 75), ("UDI", "Udinese", "UDI", 73), ("GEN", "Genoa", "GEN", 73),
        ("MON", "Monza", "MON", 72), ("EMP", "Empoli", "EMP", 72), ("CAG", "Cagliari", "CAG", 72),
        ("LEC", "Lecce", "LEC", 71), ("VER", "Verona", "VER", 71), ("PAR", "Parma", "PAR", 71),
        ("COM", "Como", "COM", 71), ("VEN", "Venezia", "VEN", 70),
    ],
    "GER_BUNDES": [
        ("FCB", "Bayern Munich", "FCB", 86), ("B04", "Bayer Leverkusen", "B04", 83), ("BVB", "Borussia Dortmund", "BVB", 81),
        ("RBL", "RB Leipzig", "RBL", 80), ("VFB", "Stuttgart", "VFB", 79), ("SGE", "Eintracht Frankfurt", "SGE", 77),
        ("SCF", "Freiburg", "SCF", 75), ("TSG", "Hoffenheim", "TSG", 75), ("WOB", "Wolfsburg", "WOB", 75),
        ("BMG", "Borussia Monchengladbach", "BMG", 74), ("FCU", "Union Berlin", "FCU", 74), ("SVW", "Werder Bremen", "SVW", 74),
        ("M05", "Mainz", "M05", 73), ("FCA", "Augsburg", "FCA", 72), ("HDH", "Heidenheim", "HDH", 71),
        ("BOC2", "Bochum", "BOC", 70), ("STP", "St. Pauli", "STP", 70), ("KSV", "Holstein Kiel", "KSV", 69),
    ],
    "FRA_LIGUE_1": [
        ("PSG", "Paris Saint-Germain", "PSG", 84), ("MCO", "Monaco", "MCO", 79), ("OM", "Marseille", "OM", 78),
        ("LIL", "Lille", "LIL", 77), ("OL", "Lyon", "OL", 77), ("NIC", "Nice", "NIC", 76),
        ("RCL", "Lens", "RCL", 76), ("REN", "Rennes", "REN", 75), ("SB29", "Brest", "SB29", 74),
        ("RCSA", "Strasbourg", "RCSA", 73), ("TFC", "Toulouse", "TFC", 73), ("FCN", "Nantes", "FCN", 72),
        ("REI", "Reims", "REI", 72), ("MHSC", "Montpellier", "MHSC", 71), ("AJA", "Auxerre", "AJA", 70),
        ("HAC", "Le Havre", "HAC", 70), ("ANG", "Angers", "ANG", 69), ("ASSE", "Saint-Etienne", "ASSE", 69),
    ],
}

MARKET_POSITIONS: tuple[str, ...] = ("GK", "DEF", "DEF", "MID", "MID", "ATT")


def _market_players(club: Club, country: str, name_gen: NameGenerator) -> list[Player]:
    rng = random.Random(f"market:{club.club_id}")
    base = max(base_overall_for(club.division_id), int(club.overall) - 4)
    players: list[Player] = []
    for idx, position in enumerate(MARKET_POSITIONS, start=1):
        age = rng.randint(18, 33)
        overall = min(92, max(50, base + rng.randint(-4, 6)))
        players.append(
            Player(
                player_id=f"{club.club_id}_m{idx}",
                name=name_gen.next_name(country),
                position=position,
                age=age,
                overall=overall,
                value=player_value(overall, age),
                wage=round(DEFAULT_PLAYER_WAGE * rng.uniform(0.8, 2.5)),
                form=rng.randint(-2, 2),
                club_id=club.club_id,
                nationality=country,
            )
        )
    return players


def build_default_world() -> WorldData:
    divisions = [
        Division(division_id=div_id, name=name, country=country, level=level, confederation=confed)
        for div_id, name, country, level, confed in DIVISIONS
    ]
    name_gen = NameGenerator(seed=11)
    clubs: list[Club] = []
    players: list[Player] = []
    for division in divisions:
        for club_id, name, short, overall in CLUBS.get(division.division_id, []):
            club = Club(
                club_id=club_id,
                name=name,
                division_id=division.division_id,
                short_name=short,
                overall=float(overall),
                country=division.country,
            )
            clubs.append(club)
            players.extend(_market_players(club, division.country, name_gen))
    return WorldData(divisions=divisions, clubs=clubs, players=players)


def default_rules_payload() -> dict[str, object]:
    return {
        "zones": {
            "BRA_SERIE_A": {
                "continental": {"LIB": {"from": 1, "to": 6}, "SULA": {"from": 7, "to": 12}},
                "relegation": {"from": 17, "to": 20},
            },
            "BRA_SERIE_B": {"promotion": {"from": 1, "to": 4}},
            "ARG_PRIMERA": {"continental": {"LIB": {"from": 1, "to": 5}, "SULA": {"from": 6, "to": 11}}},
            "ENG_PREMIER": {"continental": {"UCL": {"from": 1, "to": 4}, "UEL": {"from": 5, "to": 6}}},
            "ESP_LALIGA": {"continental": {"UCL": {"from": 1, "to": 4}, "UEL": {"from": 5, "to": 6}}},
            "ITA_SERIE_A": {"continental": {"UCL": {"from": 1, "to": 4}, "UEL": {"from": 5, "to": 6}}},
            "GER_BUNDES": {"continental": {"UCL": {"from": 1, "to": 4}, "UEL": {"from": 5, "to": 6}}},
            "FRA_LIGUE_1": {"continental": {"UCL": {"from": 1, "to": 3}, "UEL": {"from": 4, "to": 5}}},
        },
        "competitions": [
            {
                "competition_id": "UCL",
                "name": "Champions Cup",
                "confederation": "UEFA",
                "format": TournamentFormat.GROUPS_THEN_KNOCKOUT.value,
                "size": 32,
                "assoc_slots": {"ENG": 4, "ESP": 4, "ITA": 4, "GER": 4, "FRA": 3},
                "overflow_to": "UEL",
            },
            {
                "competition_id": "UEL",
                "name": "Europa Trophy",
                "confederation": "UEFA",
                "format": TournamentFormat.LEAGUE_PHASE_THEN_KNOCKOUT.value,
                "size": 32,
                "assoc_slots": {"ENG": 2, "ESP": 2, "ITA": 2, "GER": 2, "FRA": 2},
                "league_phase_rounds": 8,
                "knockout_qualifiers": 8,
            },
            {
                "competition_id": "LIB",
                "name": "Libertadores",
                "confederation": "CONMEBOL",
                "format": TournamentFormat.GROUPS_THEN_KNOCKOUT.value,
                "size": 16,
                "assoc_slots": {"BRA": 6, "ARG": 5},
                "overflow_to": "SULA",
            },
            {
                "competition_id": "SULA",
                "name": "Sudamericana",
                "confederation": "CONMEBOL",
                "format": TournamentFormat.GROUPS_THEN_KNOCKOUT.value,
                "size": 16,
                "assoc_slots": {"BRA": 6, "ARG": 6},
            },
        ],
        "tiers": [{"upper": "BRA_SERIE_A", "lower": "BRA_SERIE_B", "slots": 4}],
    }


def default_rules() -> GameRules:
    return GameRules.from_payload(default_rules_payload())


def format_standings(rows: Iterable[TableRow], rules: GameRules | None = None, division_id: str = "") -> str:
    lines = ["Pos Club                     P   W  D  L  GF  GA  GD Pts Zone"]
    for idx, row in enumerate(rows, start=1):
        zone = rules.zone_for_position(division_id, idx) if rules is not None else None
        lines.append(
            f"{idx:>3} {row.name:<22} {row.played:>3} {row.won:>3} {row.drawn:>2} {row.lost:>2}"
            f" {row.goals_for:>3} {row.goals_against:>3} {row.goal_diff:>3} {row.points:>3} {zone or ''}"
        )
    return "\n".join(lines)
