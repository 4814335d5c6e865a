"""
Tests for demangler.
"""

from dataclasses import dataclass
from typing import Optional

from itanium_abi_demangler import DemangleError, DemangleOptions, UnexpectedEnd, parse


@dataclass
class CaseData:
    input: str
    expected: str
    expected_no_params: Optional[str] = None

    def test(self):
        """
        Run the demangler on the input and verify output matches, both with
        and without parameter lists.
        """
        try:
            actual = str(parse(self.input))
        except Exception as e:
            raise AssertionError(f"Failed on input `{self.input}`") from e

        assert self.expected == actual, (
            "\n" f"Input:    {self.input}\n" f"Expected: {self.expected}\n" f"Actual:   {actual}\n"
        )
        self.test_truncations()

        if self.expected_no_params is None:
            return
        actual = str(parse(self.input, DemangleOptions(show_params=False)))
        assert self.expected_no_params == actual, (
            "\n"
            f"Input:    {self.input}\n"
            f"Expected: {self.expected_no_params}\n"
            f"Actual:   {actual}\n"
        )

    def test_truncations(self):
        """
        Cut the input short at every position. Each prefix must either parse
        as a symbol of its own or be reported as truncated.
        """
        for end in range(len(self.input)):
            prefix = self.input[:end]
            try:
                parse(prefix)
            except UnexpectedEnd:
                pass
            except DemangleError as e:
                raise AssertionError(f"`{prefix}`, cut from `{self.input}`, raised {e!r}") from e


def test_basic():
    """
    Test very basic mangled function names with no special cases.
    """
    test_data = [
        CaseData(
            input="_ZN5space3fooEii",
            expected="space::foo(int, int)",
            expected_no_params="space::foo",
        ),
        CaseData(
            input="_ZN5space3fooEibc",
            expected="space::foo(int, bool, char)",
            expected_no_params="space::foo",
        ),
        CaseData(input="_Z3foov", expected="foo()", expected_no_params="foo"),
        CaseData(input="_Z1fiz", expected="f(int, ...)", expected_no_params="f"),
        CaseData(input="_Z3foo", expected="foo", expected_no_params="foo"),
        CaseData(input="_ZN5space3barE", expected="space::bar", expected_no_params="space::bar"),
        CaseData(
            input="__Z28JS_GetPropertyDescriptorByIdP9JSContextN2JS6HandleIP8JSObjectEENS2_I4jsidEENS1_13MutableHandleINS1_18PropertyDescriptorEEE",
            expected="JS_GetPropertyDescriptorById(JSContext*, JS::Handle<JSObject*>, JS::Handle<jsid>, JS::MutableHandle<JS::PropertyDescriptor>)",
            expected_no_params="JS_GetPropertyDescriptorById",
        ),
    ]

    for test in test_data:
        test.test()


def test_member_functions():
    """
    Test member functions, constructors, destructors and operators.
    """
    test_data = [
        CaseData(
            input="_ZNK3foo3barEv",
            expected="foo::bar() const",
            expected_no_params="foo::bar",
        ),
        CaseData(input="_ZN3fooC1Ev", expected="foo::foo()", expected_no_params="foo::foo"),
        CaseData(input="_ZN3fooD2Ev", expected="foo::~foo()", expected_no_params="foo::~foo"),
        CaseData(
            input="_ZNSt8ios_base4InitC1Ev",
            expected="std::ios_base::Init::Init()",
            expected_no_params="std::ios_base::Init::Init",
        ),
        CaseData(
            input="_ZNSsC1Ev",
            expected="std::basic_string<char, std::char_traits<char>, std::allocator<char> >::basic_string()",
        ),
        CaseData(
            input="_ZNSs4_Rep10_M_disposeERKSaIcE",
            expected="std::basic_string<char, std::char_traits<char>, std::allocator<char> >::_Rep::_M_dispose(std::allocator<char> const&)",
        ),
        CaseData(
            input="_ZN3fooplERKS_",
            expected="foo::operator+(foo const&)",
            expected_no_params="foo::operator+",
        ),
        CaseData(
            input="_ZN3foocviEv",
            expected="foo::operator int()",
            expected_no_params="foo::operator int",
        ),
        CaseData(
            input="_ZN3fooltIiEEbv",
            expected="bool foo::operator< <int>()",
            expected_no_params="foo::operator< <int>",
        ),
        CaseData(
            input="_ZN12_GLOBAL__N_13fooEv",
            expected="(anonymous namespace)::foo()",
        ),
    ]

    for test in test_data:
        test.test()


def test_types():
    """
    Test pointers, references, qualifiers and the declarator syntax of
    function, array and member pointer types.
    """
    test_data = [
        CaseData(input="_Z1fPKc", expected="f(char const*)"),
        CaseData(input="_Z1fKPc", expected="f(char* const)"),
        CaseData(input="_Z1fOi", expected="f(int&&)"),
        CaseData(input="_Z1fPFviE", expected="f(void (*)(int))"),
        CaseData(input="_Z1fPFYviE", expected="f(void (*)(int))"),
        CaseData(input="_Z1fPDoFvvE", expected="f(void (*)() noexcept)"),
        CaseData(input="_Z1fRA3_i", expected="f(int (&) [3])"),
        CaseData(input="_Z1fPA3_i", expected="f(int (*) [3])"),
        CaseData(input="_Z1fA3_A4_i", expected="f(int [3][4])"),
        CaseData(input="_Z1fPA3_A4_i", expected="f(int (*) [3][4])"),
        CaseData(input="_Z1fA3_PA4_i", expected="f(int (* [3]) [4])"),
        CaseData(input="_Z1fPA3_Pi", expected="f(int* (*) [3])"),
        CaseData(input="_Z1fRKA3_i", expected="f(int const (&) [3])"),
        CaseData(input="_Z1fKA3_A4_i", expected="f(int const [3][4])"),
        CaseData(input="_Z1fPFPFivEvE", expected="f(int (*(*)())())"),
        CaseData(input="_Z1fM3fooi", expected="f(int foo::*)"),
        CaseData(input="_Z1fM3fooFvvE", expected="f(void (foo::*)())"),
        CaseData(input="_Z1fM3fooKFvvE", expected="f(void (foo::*)() const)"),
        CaseData(input="_Z1fM3fooFvvRE", expected="f(void (foo::*)() &)"),
        CaseData(input="_Z1fCd", expected="f(double _Complex)"),
        CaseData(input="_Z1fDv4_f", expected="f(float __vector(4))"),
        CaseData(input="_Z1fTs3foo", expected="f(struct foo)"),
        CaseData(input="_Z1f3fooS_", expected="f(foo, foo)"),
        CaseData(input="_Z1fu3foo", expected="f(foo)"),
    ]

    for test in test_data:
        test.test()


def test_templates():
    """
    Test template functions, which encode their return type, and template
    argument substitution.
    """
    test_data = [
        CaseData(input="_Z1fIiEvT_", expected="void f<int>(int)", expected_no_params="f<int>"),
        CaseData(
            input="_ZNSt6vectorIiSaIiEE9push_backERKi",
            expected="std::vector<int, std::allocator<int> >::push_back(int const&)",
            expected_no_params="std::vector<int, std::allocator<int> >::push_back",
        ),
        CaseData(
            input="_ZSt4endlIcSt11char_traitsIcEERSt13basic_ostreamIT_T0_ES6_",
            expected="std::basic_ostream<char, std::char_traits<char> >& std::endl<char, std::char_traits<char> >(std::basic_ostream<char, std::char_traits<char> >&)",
            expected_no_params="std::endl<char, std::char_traits<char> >",
        ),
        CaseData(input="_Z1fIiEPFivEv", expected="int (*f<int>())()"),
        CaseData(input="_Z1fIiEPA3_iv", expected="int (*f<int>()) [3]"),
        CaseData(input="_Z1fIA3_iEvRKT_", expected="void f<int [3]>(int const (&) [3])"),
        CaseData(input="_Z1fIJidEEvDpT_", expected="void f<int, double>(int, double)"),
        CaseData(input="_Z1fIJEEvDpT_", expected="void f<>()"),
        CaseData(input="_Z1fIiEDtfp_ET_", expected="decltype ({parm#1}) f<int>(int)"),
        CaseData(
            input="_Z1fIiEDTplfp_fp_ET_",
            expected="decltype ({parm#1}+{parm#1}) f<int>(int)",
        ),
    ]

    for test in test_data:
        test.test()


def test_template_literals():
    """
    Test literal and expression template arguments.
    """
    test_data = [
        CaseData(input="_Z1fILi3EEvv", expected="void f<3>()"),
        CaseData(input="_Z1fILin1EEvv", expected="void f<-1>()"),
        CaseData(input="_Z1fILj5EEvv", expected="void f<5u>()"),
        CaseData(input="_Z1fILb1EEvv", expected="void f<true>()"),
        CaseData(input="_Z1fILb0EEvv", expected="void f<false>()"),
        CaseData(input="_Z1fILc97EEvv", expected="void f<(char)97>()"),
        CaseData(input="_Z1fILDnEEvv", expected="void f<nullptr>()"),
        CaseData(input="_Z1fIXplLi1ELi2EEEvv", expected="void f<(1+2)>()"),
        CaseData(input="_Z1fIXmlplLi1ELi2ELi3EEEvv", expected="void f<((1+2)*3)>()"),
        CaseData(input="_Z1fIXstiEEvv", expected="void f<sizeof (int)>()"),
    ]

    for test in test_data:
        test.test()


def test_local_names():
    """
    Test entities declared inside functions, including lambdas.
    """
    test_data = [
        CaseData(
            input="_ZZ4mainENKUlvE_clEv",
            expected="main::{lambda()#1}::operator()() const",
            expected_no_params="main::{lambda()#1}::operator()",
        ),
        CaseData(
            input="_ZZ4mainENKUliE0_clEi",
            expected="main::{lambda(int)#2}::operator()(int) const",
        ),
        CaseData(input="_ZZ3foovEs", expected="foo()::string literal"),
        CaseData(input="_ZN3fooUt_E", expected="foo::{unnamed type#1}"),
        CaseData(input="_Z3fooB5cxx11v", expected="foo[abi:cxx11]()"),
    ]

    for test in test_data:
        test.test()


def test_special_names():
    """
    Test vtables, typeinfo, thunks and the other compiler-generated symbols.
    """
    test_data = [
        CaseData(input="_ZTV3foo", expected="vtable for foo"),
        CaseData(input="_ZTT3foo", expected="VTT for foo"),
        CaseData(input="_ZTI3foo", expected="typeinfo for foo"),
        CaseData(input="_ZTS3foo", expected="typeinfo name for foo"),
        CaseData(input="_ZTH1x", expected="TLS init function for x"),
        CaseData(input="_ZTW1x", expected="TLS wrapper function for x"),
        CaseData(input="_ZGVZ3foovE1x", expected="guard variable for foo()::x"),
        CaseData(input="_ZGR1x_", expected="reference temporary #0 for x"),
        CaseData(input="_ZGR1x0_", expected="reference temporary #1 for x"),
        CaseData(input="_ZThn8_N3foo3barEv", expected="non-virtual thunk to foo::bar()"),
        CaseData(input="_ZTv0_n24_N3foo3barEv", expected="virtual thunk to foo::bar()"),
        CaseData(input="_ZTC3foo0_3bar", expected="construction vtable for bar-in-foo"),
        CaseData(input="_ZGTtN3foo3barEv", expected="transaction clone for foo::bar()"),
        CaseData(input="_GLOBAL__I__Z3foov", expected="global constructors keyed to foo()"),
        CaseData(input="_GLOBAL__D__Z3foov", expected="global destructors keyed to foo()"),
    ]

    for test in test_data:
        test.test()


def test_clone_suffixes():
    """
    Test compiler-generated clones of functions.
    """
    test_data = [
        CaseData(
            input="_Z3foov.constprop.0",
            expected="foo() [clone .constprop.0]",
            expected_no_params="foo [clone .constprop.0]",
        ),
        CaseData(input="_Z3foov.cold", expected="foo() [clone .cold]"),
        CaseData(
            input="_Z3foov.isra.0.cold",
            expected="foo() [clone .isra.0] [clone .cold]",
        ),
    ]

    for test in test_data:
        test.test()
