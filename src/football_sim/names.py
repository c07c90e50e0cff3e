from __future__ import annotations

import random

NAME_POOLS: dict[str, tuple[list[str], list[str]]] = {
    "BRA": (
        [
            "Gabriel", "Lucas", "Mateus", "Rafael", "Thiago", "Bruno", "Vinicius", "Felipe", "Gustavo", "Caio",
            "Diego", "Rodrigo", "Leandro", "Murilo", "Igor", "Danilo", "Everton", "Renan", "Wesley", "Arthur",
            "Pedro", "Joao", "Eduardo", "Henrique", "Vitor", "Marcelo", "Andre", "Fabio", "Luan", "Otavio",
        ],
        [
            "Silva", "Santos", "Oliveira", "Souza", "Pereira", "Costa", "Rodrigues", "Almeida", "Nascimento", "Lima",
            "Araujo", "Fernandes", "Carvalho", "Gomes", "Martins", "Rocha", "Ribeiro", "Alves", "Monteiro", "Mendes",
            "Barros", "Freitas", "Barbosa", "Pinto", "Moura", "Cavalcanti", "Dias", "Castro", "Campos", "Cardoso",
        ],
    ),
    "ARG": (
        [
            "Santiago", "Matias", "Nicolas", "Facundo", "Agustin", "Franco", "Lautaro", "Gonzalo", "Julian", "Emiliano",
            "Tomas", "Ezequiel", "Leandro", "Maximiliano", "Ignacio", "Valentin", "Joaquin", "Alejo", "Bruno", "Mauro",
        ],
        [
            "Gonzalez", "Rodriguez", "Fernandez", "Lopez", "Martinez", "Perez", "Gomez", "Sanchez", "Romero", "Diaz",
            "Alvarez", "Torres", "Ruiz", "Ramirez", "Flores", "Acosta", "Benitez", "Medina", "Herrera", "Sosa",
        ],
    ),
    "ENG": (
        [
            "Jack", "Harry", "George", "Oliver", "James", "Charlie", "Thomas", "Jacob", "Alfie", "Callum",
            "Mason", "Reece", "Declan", "Jordan", "Kyle", "Marcus", "Conor", "Ben", "Luke", "Aaron",
        ],
        [
            "Smith", "Jones", "Taylor", "Brown", "Walker", "Wright", "Robinson", "Thompson", "White", "Hughes",
            "Edwards", "Green", "Hall", "Wood", "Harris", "Clarke", "Jackson", "Turner", "Hill", "Cooper",
        ],
    ),
    "ESP": (
        [
            "Alejandro", "Pablo", "Sergio", "Alvaro", "Adrian", "Javier", "Daniel", "Carlos", "Mario", "Raul",
            "Marcos", "Ivan", "Ruben", "Hugo", "Iker", "Unai", "Mikel", "Dani", "Jorge", "Borja",
        ],
        [
            "Garcia", "Martin", "Jimenez", "Moreno", "Munoz", "Alonso", "Navarro", "Dominguez", "Vazquez", "Ramos",
            "Gil", "Serrano", "Blanco", "Molina", "Morales", "Ortega", "Delgado", "Castro", "Ortiz", "Rubio",
        ],
    ),
    "ITA": (
        [
            "Lorenzo", "Alessandro", "Francesco", "Matteo", "Andrea", "Federico", "Riccardo", "Davide", "Simone", "Marco",
            "Giacomo", "Nicolo", "Stefano", "Filippo", "Emanuele", "Leonardo", "Tommaso", "Pietro", "Luca", "Gianluca",
        ],
        [
            "Rossi", "Russo", "Ferrari", "Esposito", "Bianchi", "Romano", "Colombo", "Ricci", "Marino", "Greco",
            "Bruno", "Gallo", "Conti", "DeLuca", "Mancini", "Costa", "Giordano", "Rizzo", "Lombardi", "Moretti",
        ],
    ),
    "GER": (
        [
            "Leon", "Lukas", "Jonas", "Felix", "Niklas", "Tim", "Julian", "Florian", "Kai", "Maximilian",
            "Jan", "Moritz", "Timo", "Marco", "Sebastian", "Tobias", "Kevin", "Dennis", "Robin", "Benedikt",
        ],
        [
            "Muller", "Schmidt", "Schneider", "Fischer", "Weber", "Meyer", "Wagner", "Becker", "Schulz", "Hoffmann",
            "Koch", "Richter", "Klein", "Wolf", "Schroder", "Neumann", "Braun", "Zimmermann", "Kruger", "Hartmann",
        ],
    ),
    "FRA": (
        [
            "Hugo", "Theo", "Lucas", "Antoine", "Kylian", "Ousmane", "Adrien", "Benjamin", "Clement", "Corentin",
            "Jules", "Mathis", "Nabil", "Rayan", "Romain", "Yanis", "Maxence", "Florian", "Bastien", "Aurelien",
        ],
        [
            "Martin", "Bernard", "Dubois", "Thomas", "Robert", "Richard", "Petit", "Durand", "Leroy", "Moreau",
            "Simon", "Laurent", "Lefebvre", "Michel", "Fontaine", "Rousseau", "Vincent", "Mercier", "Girard", "Bonnet",
        ],
    ),
}

DEFAULT_POOL = "BRA"


class NameGenerator:
    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)
        self._used: set[str] = set()
        self._pools: dict[str, list[str]] = {}
        self._idx: dict[str, int] = {}

    def _pool(self, country: str) -> list[str]:
        key = country if country in NAME_POOLS else DEFAULT_POOL
        if key not in self._pools:
            first_names, last_names = NAME_POOLS[key]
            pool = [f"{first} {last}" for first in first_names for last in last_names]
            self._rng.shuffle(pool)
            self._pools[key] = pool
            self._idx[key] = 0
        return self._pools[key]

    def next_name(self, country: str = DEFAULT_POOL) -> str:
        pool = self._pool(country)
        key = country if country in NAME_POOLS else DEFAULT_POOL
        while self._idx[key] < len(pool):
            name = pool[self._idx[key]]
            self._idx[key] += 1
            if name not in self._used:
                self._used.add(name)
                return name

        suffix = 2
        while True:
            candidate = f"{self._rng.choice(pool)} {suffix}"
            if candidate not in self._used:
                self._used.add(candidate)
                return candidate
            suffix += 1
