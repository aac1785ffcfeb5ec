# Roster composition rules for one fantasy team.

ROLE_GOALKEEPER = "P"
ROLE_DEFENDER = "D"
ROLE_MIDFIELDER = "C"
ROLE_FORWARD = "A"

ALL_PLAYER_ROLES = (ROLE_GOALKEEPER, ROLE_DEFENDER, ROLE_MIDFIELDER, ROLE_FORWARD)

ROLE_QUOTAS = {
    ROLE_GOALKEEPER: 3,
    ROLE_DEFENDER: 8,
    ROLE_MIDFIELDER: 8,
    ROLE_FORWARD: 6,
}

ROLE_NAMES = {
    ROLE_GOALKEEPER: "Goalkeepers",
    ROLE_DEFENDER: "Defenders",
    ROLE_MIDFIELDER: "Midfielders",
    ROLE_FORWARD: "Forwards",
}

ROSTER_SIZE = sum(ROLE_QUOTAS.values())  # 25

# every still-missing slot except the one being bid on must stay affordable at this price
MIN_SLOT_PRICE = 1


def role_name(role: str) -> str:
    return ROLE_NAMES.get(role, role)
