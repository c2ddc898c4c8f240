from dataclasses import dataclass, field
from ophistory import Bindable, OperationController, OperationRecorder


@dataclass
class Person(Bindable):

    name: str = ""
    age: int = 0
    children: list = field(default_factory=list)


class ManualClock:

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


if __name__ == "__main__":
    clock = ManualClock()
    controller = OperationController(mergeSpan=0.07, clock=clock)
    person = Person(name="Venus", age=14)

    # Quick successive edits of the same property are one undo step
    controller.executeSetProperty(person, "age", 30)
    clock.advance(0.01)
    controller.executeSetProperty(person, "age", 100)
    clock.advance(0.075)
    controller.executeSetProperty(person, "age", 150)
    assert len(controller.undoStack) == 2
    controller.undo()
    assert person.age == 100
    controller.undo()
    assert person.age == 14

    # Several edits recorded as one
    recorder = OperationRecorder(controller)
    with recorder.recording("adopt") as rec:
        rec.executeAdd(person.children, Person(name="Child1"))
        rec.executeSetProperty(person, "name", "Parent")
    assert controller.undoLabel() == "adopt"
    controller.undo()
    assert person.children == [] and person.name == "Venus"
    controller.redo()
    assert len(person.children) == 1 and person.name == "Parent"

    # Plain assignments become undoable while watched
    with controller.bindPropertyChanged(person, "name", mergeEnabled=False):
        clock.advance(1)
        person.name = "Yamada"
        person.name = "Tanaka"
        controller.undo()
        assert person.name == "Yamada"
        controller.undo()
        assert person.name == "Parent"
    numUndoItems = len(controller.undoStack)
    person.name = "Suzuki"
    assert len(controller.undoStack) == numUndoItems
