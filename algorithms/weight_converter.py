class WeightConverter:
    """Utility for converting between kg and lb."""

    KG_TO_LB = 2.20462

    @staticmethod
    def kg_to_lb(kg: float) -> float:
        return round(kg * WeightConverter.KG_TO_LB, 2)

    @staticmethod
    def lb_to_kg(lb: float) -> float:
        return round(lb / WeightConverter.KG_TO_LB, 2)

    @staticmethod
    def to_lb(weight: float, unit: str) -> float:
        """Return ``weight`` expressed in pounds without rounding.

        Only ``kg`` is converted; any other unit is taken to be pounds.
        """
        if unit == "kg":
            return weight * WeightConverter.KG_TO_LB
        return weight
