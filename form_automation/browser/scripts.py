"""JavaScript snippets evaluated inside target pages."""

# Hides the automation flag most bot checks look at first.
HIDE_WEBDRIVER = """
    Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
"""

SCROLL_TO_BOTTOM = "() => window.scrollTo(0, document.body.scrollHeight)"
SCROLL_TO_TOP = "() => window.scrollTo(0, 0)"

VISIBLE_TEXT = "() => document.body ? document.body.innerText : ''"

# Every control inside a <form>. Radios are grouped by name so that a group
# is one field whose options are its choices.
FORM_CONTROLS = """
    () => {
        const SKIPPED = ['submit', 'button', 'reset', 'image', 'file', 'password'];
        const controls = [];
        const radioGroups = {};

        const labelFor = (el) => {
            const labelEl = (el.labels && el.labels[0]) ||
                (el.id ? document.querySelector(`label[for="${CSS.escape(el.id)}"]`) : null);
            return labelEl ? labelEl.textContent.trim() : '';
        };

        document.querySelectorAll('form').forEach((form) => {
            form.querySelectorAll('input, select, textarea').forEach((el) => {
                const type = (el.type || el.tagName).toLowerCase();
                if (SKIPPED.includes(type)) return;

                if (type === 'radio') {
                    if (!el.name) return;
                    let group = radioGroups[el.name];
                    if (!group) {
                        group = {
                            selector: `[name="${el.name}"]`,
                            type: 'radio',
                            name: el.name,
                            id: '',
                            label: el.name,
                            required: false,
                            options: [],
                        };
                        radioGroups[el.name] = group;
                        controls.push(group);
                    }
                    group.required = group.required || el.required;
                    group.options.push(labelFor(el) || el.value);
                    return;
                }

                let selector = '';
                if (el.id) {
                    selector = `#${CSS.escape(el.id)}`;
                } else if (el.name) {
                    selector = `[name="${el.name}"]`;
                }
                if (!selector) return;

                const options = [];
                if (el.tagName === 'SELECT') {
                    for (const opt of el.options) {
                        if (opt.value) options.push(opt.text || opt.value);
                    }
                }

                controls.push({
                    selector: selector,
                    type: el.tagName === 'SELECT' ? 'select' : type,
                    name: el.name || '',
                    id: el.id || '',
                    label: labelFor(el),
                    required: el.required || el.getAttribute('aria-required') === 'true',
                    options: options,
                });
            });
        });

        return controls;
    }
"""

# Fields the site flagged as invalid after a submit attempt.
INVALID_FIELDS = """
    () => {
        const issues = [];
        document.querySelectorAll('[aria-invalid="true"]').forEach((el) => {
            const labelEl = el.labels && el.labels[0];
            const field = (labelEl && labelEl.textContent.trim()) || el.name || el.id || '';
            let error = el.validationMessage || '';
            const describedBy = el.getAttribute('aria-describedby');
            if (!error && describedBy) {
                const msg = document.getElementById(describedBy);
                if (msg) error = msg.textContent.trim();
            }
            if (field) issues.push({ field: field, error: error || 'invalid value' });
        });
        return issues;
    }
"""
