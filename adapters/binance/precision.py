"""
가격/수량 정밀도 처리

tick size에서 소수 자릿수를 구하고, 금액을 그 자릿수로 절사(0 방향)하여
과학적 표기법 없는 10진 문자열로 렌더링한다.

float는 repr 문자열을 거쳐 Decimal로 변환하므로 이진 부동소수점의
표현 오차(예: 0.1 + 0.2)가 자릿수 계산에 섞이지 않는다.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_EVEN, localcontext

# 자릿수 탐색 상한 (무한 루프 방지)
MAX_PRECISION = 15

# quantize 연산용 유효 자릿수 (기본 28자리로는 큰 금액에서 InvalidOperation)
WORKING_PRECISION = 60

Number = Decimal | float | int | str


def to_decimal(value: Number) -> Decimal:
    """숫자/숫자 문자열 -> Decimal

    Raises:
        ValueError: 숫자로 해석할 수 없는 경우
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"not a number: {value!r}") from e


def precision_of(tick_size: Number) -> int:
    """tick size의 소수 자릿수

    0자리부터 시작해, 해당 자릿수로 반올림한 값이 tick size와
    정확히 같아질 때까지 자릿수를 늘린다 (최대 MAX_PRECISION).
    유한하지 않은 값(inf, nan)은 0.

    Example:
        >>> precision_of("0.001")
        3
        >>> precision_of(0.234)
        3
        >>> precision_of(float("inf"))
        0
    """
    try:
        tick = to_decimal(tick_size)
    except ValueError:
        return 0

    if not tick.is_finite():
        return 0

    with localcontext() as ctx:
        ctx.prec = WORKING_PRECISION
        for digits in range(MAX_PRECISION + 1):
            quantum = Decimal(1).scaleb(-digits)
            try:
                if tick.quantize(quantum, rounding=ROUND_HALF_EVEN) == tick:
                    return digits
            except InvalidOperation:
                return 0

    return MAX_PRECISION


def scientific_to_decimal(num: Number) -> str:
    """과학적 표기법을 일반 10진 문자열로 변환

    음수/양수 지수 모두 처리하며 계수의 숫자열을 그대로 보존한다.

    Example:
        >>> scientific_to_decimal(1e-7)
        '0.0000001'
        >>> scientific_to_decimal("1.5e+21")
        '1500000000000000000000'
        >>> scientific_to_decimal("0.25")
        '0.25'
    """
    value = to_decimal(num)
    if not value.is_finite():
        raise ValueError(f"not a finite number: {num!r}")
    return format(value, "f")


def round_to_tick(amount: Number, tick_size: Number) -> str:
    """금액을 tick size 자릿수로 절사한 10진 문자열

    0 방향 절사이므로 결과의 절댓값은 입력보다 커지지 않으며,
    결과에 다시 적용해도 같은 값이 나온다 (멱등).
    뒤쪽 0은 제거한다.

    Example:
        >>> round_to_tick(0.0000001234, 0.0000001)
        '0.0000001'
        >>> round_to_tick("123.456789", "0.01")
        '123.45'
    """
    value = to_decimal(amount)
    if not value.is_finite():
        raise ValueError(f"not a finite number: {amount!r}")

    digits = precision_of(tick_size)
    with localcontext() as ctx:
        # 정수부 자릿수 + 소수 자릿수를 모두 담을 만큼 확장
        ctx.prec = max(WORKING_PRECISION, value.adjusted() + digits + 2)
        truncated = value.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_DOWN)

        if truncated.is_zero():
            return "0"

        return scientific_to_decimal(_strip_zeros(truncated))


def _strip_zeros(value: Decimal) -> Decimal:
    # normalize()는 정수부의 0도 지수로 옮기므로 (100 -> 1E+2) 소수부만 정리
    if value == value.to_integral_value():
        return value.quantize(Decimal(1))
    return value.normalize()
