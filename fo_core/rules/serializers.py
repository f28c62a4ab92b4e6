# fo_core/rules/serializers.py

from rest_framework import serializers

from fo_core.rules.types import Logic, Operator


class ConditionSerializer(serializers.Serializer):
    field = serializers.CharField(max_length=64)
    operator = serializers.ChoiceField(choices=Operator.ALL)
    value = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=500)

    def validate(self, attrs):
        op = attrs["operator"]
        value = attrs.get("value")
        if op in Operator.UNARY:
            attrs["value"] = None
            return attrs
        if value is None or not str(value).strip():
            raise serializers.ValidationError({"value": f"A value is required for '{op}'."})
        if op == Operator.IN and not [v for v in value.split(",") if v.strip()]:
            raise serializers.ValidationError({"value": "List at least one value, separated by commas."})
        return attrs


class ConditionSetSerializer(serializers.Serializer):
    logic = serializers.ChoiceField(choices=Logic.CHOICES, default=Logic.ALL)
    # an empty set would match nothing; reject it when the rule is saved
    conditions = ConditionSerializer(many=True, allow_empty=False)
