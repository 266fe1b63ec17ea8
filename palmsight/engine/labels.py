"""Closed vocabularies shared by the detector, the analyzer and the rule table."""

from __future__ import annotations

import enum


class LineLabel(str, enum.Enum):
    VIDA = "vida"  # life
    CABECA = "cabeca"  # head
    CORACAO = "coracao"  # heart
    DESTINO = "destino"  # fate


# Order in which the classifier reports surviving lines.
DETECTION_ORDER = (LineLabel.VIDA, LineLabel.CABECA, LineLabel.CORACAO, LineLabel.DESTINO)

# Order in which the narrative is assembled.
NARRATIVE_ORDER = (LineLabel.CORACAO, LineLabel.CABECA, LineLabel.VIDA, LineLabel.DESTINO)


class Mount(str, enum.Enum):
    SUN = "sun"
    INFERIOR = "inferior"
    JUPITER = "jupiter"
    MERCURY = "mercury"
    VENUS = "venus"
    SATURN = "saturn"


class Condition(str, enum.Enum):
    """Condition keys of the rule table."""

    PRESENCA = "presenca"
    AUSENCIA = "ausencia"
    # Strength
    ROBUSTA = "robusta"
    PALIDA = "palida"
    # Length class
    LONGA = "longa"
    CURTA = "curta"
    # Direction / shape
    ASCENDENTE = "ascendente"
    DESCENDENTE = "descendente"
    DIAGONAL = "diagonal"
    VERTICAL = "vertical"
    RAMIFICADA = "ramificada"
    BIFURCADA_PARA_JUPITER = "bifurcada_para_jupiter"
    # End zones
    TERMINA_EM_JUPITER = "termina_em_jupiter"
    TERMINA_EM_SATURNO = "termina_em_saturno"
    TERMINA_EM_MERCURIO = "termina_em_mercurio"
    ORIGEM_EM_MERCURIO = "origem_em_mercurio"
    ORIGEM_EM_VENUS = "origem_em_venus"


# Mount → "ends in" condition, for lines whose termination zone is reported.
TERMINATION_BY_MOUNT = {
    Mount.JUPITER: Condition.TERMINA_EM_JUPITER,
    Mount.SATURN: Condition.TERMINA_EM_SATURNO,
    Mount.MERCURY: Condition.TERMINA_EM_MERCURIO,
}
