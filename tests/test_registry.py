import pytest

from wotop.registry import UsecaseNotRegisteredError, UsecaseRegistry, package_of


def _make(name, module):
    return type(name, (), {"__module__": module})


Interactor = _make("Interactor", "shop.usecase.getproduct.interactor")
Inport = _make("Inport", "shop.usecase.getproduct.inport")
OtherInteractor = _make("Interactor", "shop.usecase.createorder.interactor")
OtherInport = _make("Inport", "shop.usecase.createorder.inport")
Flat = _make("Flat", "standalone")


def test_package_of_instance_and_class_agree():
    assert package_of(Interactor()) == "getproduct"
    assert package_of(Inport) == "getproduct"


def test_package_of_top_level_module():
    assert package_of(Flat) == "standalone"


def test_get_registered_usecase_by_inport_type():
    registry = UsecaseRegistry()
    interactor = Interactor()
    registry.add_usecase(interactor)
    assert registry.get_usecase(Inport) is interactor


def test_add_several_at_once():
    registry = UsecaseRegistry()
    first, second = Interactor(), OtherInteractor()
    registry.add_usecase(first, second)
    assert registry.get_usecase(Inport) is first
    assert registry.get_usecase(OtherInport) is second


def test_later_registration_replaces_earlier():
    registry = UsecaseRegistry()
    old, new = Interactor(), Interactor()
    registry.add_usecase(old)
    registry.add_usecase(new)
    assert registry.get_usecase(Inport) is new


def test_missing_usecase_raises():
    registry = UsecaseRegistry()
    registry.add_usecase(Interactor())
    with pytest.raises(UsecaseNotRegisteredError) as info:
        registry.get_usecase(OtherInport)
    assert info.value.package == "createorder"
    assert str(info.value) == (
        'usecase with package "createorder" is not registered yet in application'
    )


def test_error_is_lookup_error():
    with pytest.raises(LookupError):
        UsecaseRegistry().get_usecase(Inport)