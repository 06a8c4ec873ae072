import pytest

from options import (
    BooleanValue, CartLine, MultiChoiceValue, NumberValue, TextValue, generate_options_key,
    option_value, parse_options,
)


def test_key_without_options_is_the_product_id():
    assert generate_options_key('p1') == 'p1'
    assert generate_options_key('p1', {}) == 'p1'
    assert generate_options_key(7, None) == '7'


def test_key_ignores_insertion_order():
    a = generate_options_key('p1', {'size': 'M', 'color': 'Red'})
    b = generate_options_key('p1', {'color': 'Red', 'size': 'M'})

    assert a == b == 'p1_color:Red|size:M'


def test_key_changes_with_values():
    assert generate_options_key('p1', {'size': 'M'}) != generate_options_key('p1', {'size': 'L'})
    assert generate_options_key('p1', {'size': 'M'}) != generate_options_key('p2', {'size': 'M'})


def test_key_uses_text_form_of_values():
    assert generate_options_key('p1', {'qty': 2}) == 'p1_qty:2'
    assert generate_options_key('p1', {'qty': 2.0}) == generate_options_key('p1', {'qty': 2})
    assert generate_options_key('p1', {'qty': 2.5}) == 'p1_qty:2.5'
    assert generate_options_key('p1', {'gift': True}) == 'p1_gift:true'
    assert generate_options_key('p1', {'extras': ['a', 'b']}) == 'p1_extras:a,b'


def test_multi_choice_order_matters():
    assert generate_options_key('p1', {'extras': ['a', 'b']}) != generate_options_key('p1', {'extras': ['b', 'a']})


def test_option_value_variants():
    assert option_value(True) == BooleanValue(True)
    assert option_value(3) == NumberValue(3)
    assert option_value('M') == TextValue('M')
    assert option_value(['S', 1]) == MultiChoiceValue(('S', '1'))
    with pytest.raises(ValueError):
        option_value(None)


def test_parse_options_drops_nulls_and_rejects_non_mappings():
    assert parse_options({'a': 'x', 'b': None}) == {'a': TextValue('x')}
    with pytest.raises(ValueError):
        parse_options(['a'])


def test_cart_line_computes_key_and_subtotal():
    line = CartLine(product_id='p1', name='Mug', price=5.0, quantity=3, options={'wrap': TextValue('yes')})

    assert line.options_key == 'p1_wrap:yes'
    assert line.subtotal == 15.0
    assert line.to_dict()['options'] == {'wrap': 'yes'}


def test_cart_line_migrates_legacy_entries():
    line = CartLine.from_dict({'product_id': 'p1', 'name': 'Old', 'price': 10, 'quantity': 2})

    assert line.options == {}
    assert line.options_key == 'p1'


def test_cart_line_round_trip():
    line = CartLine(product_id='p1', name='Box', price=12.5, quantity=2,
                    options={'size': TextValue('M'), 'extras': MultiChoiceValue(('a', 'b'))})

    assert CartLine.from_dict(line.to_dict()) == line


def test_cart_line_rejects_bad_entries():
    with pytest.raises(ValueError):
        CartLine.from_dict({'name': 'No id', 'price': 1})
    with pytest.raises(ValueError):
        CartLine.from_dict({'product_id': 'p1', 'quantity': -1})
