"""
Logical (MLD) and physical (MPD) micro-syntax samples.
"""

# =============================================================================
# MLD
# =============================================================================

SIMPLE_MLD = """
TABLE CLIENT {
    id_client [PK]
    nom
    email
}

TABLE COMMANDE {
    id_commande [PK]
    date_commande
    id_client [FK -> CLIENT.id_client]
}
"""

CHAIN_MLD = """
TABLE C {
    id_c [PK]
    id_b [FK -> B.id_b]
}

TABLE B {
    id_b [PK]
    id_a [FK -> A.id_a]
}

TABLE A {
    id_a [PK]
}
"""

CYCLIC_MLD = """
TABLE A {
    id_a [PK]
    id_b [FK -> B.id_b]
}

TABLE B {
    id_b [PK]
    id_a [FK -> A.id_a]
}
"""

ACTIONS_MLD = """
TABLE CLIENT { id_client [PK] }
TABLE COMMANDE {
    id_commande [PK]
    id_client [FK -> CLIENT.id_client ON DELETE SET NULL ON UPDATE RESTRICT]
}
"""

# =============================================================================
# MPD
# =============================================================================

SIMPLE_MPD = """
TABLE CLIENT {
    id_client INT [PK] [NOT NULL]
    email VARCHAR(255) [UNIQUE]
    actif BOOLEAN
}

TABLE COMMANDE {
    id_commande INT [PK] [NOT NULL]
    total DECIMAL(10,2) [CHECK(total >= 0)]
    id_client INT [FK -> CLIENT.id_client ON DELETE CASCADE ON UPDATE CASCADE] [NOT NULL]
}
"""
